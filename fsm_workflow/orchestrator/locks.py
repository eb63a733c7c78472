"""
Per-instance locking.

Serializes read-modify-write cycles against the same instance inside one
process. Different instances never share a lock.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator


class InstanceLockRegistry:
    """
    Hands out one ``asyncio.Lock`` per instance ID.

    Locks are reference counted and dropped once nobody holds or waits on
    them, so the registry does not grow with the number of instances.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, instance_id: str) -> AsyncGenerator[None, None]:
        """
        Hold the lock for an instance.

        Usage:
            async with locks.hold(instance_id):
                # read, decide, write
        """
        lock = self._locks.get(instance_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[instance_id] = lock
        self._users[instance_id] = self._users.get(instance_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[instance_id] -= 1
            if self._users[instance_id] == 0:
                del self._users[instance_id]
                del self._locks[instance_id]

    def __len__(self) -> int:
        return len(self._locks)
