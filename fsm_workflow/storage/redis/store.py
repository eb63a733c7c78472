"""
Redis-backed workflow store.

Each definition and instance is a JSON string under its own key; two sets
index the known identifiers. Instance replacement is a compare-and-set done
by a Lua script so it stays atomic across processes.
"""

import logging
from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from pydantic import TypeAdapter

from fsm_workflow.config.settings import RedisSettings
from fsm_workflow.core.models import WorkflowDefinition, WorkflowInstance
from fsm_workflow.storage.base import WorkflowStore
from fsm_workflow.storage.redis.connection import RedisConnection

logger = logging.getLogger(__name__)


# Lua script for atomic instance replacement
# Writes ARGV[2] only if the stored document's lastUpdated equals ARGV[1]
REPLACE_INSTANCE_SCRIPT = """
local key = KEYS[1]
local current = redis.call("GET", key)

if not current then
    return -1  -- Instance missing
end

local doc = cjson.decode(current)
if doc["lastUpdated"] ~= ARGV[1] then
    return 0  -- Stored copy changed since it was read
end

redis.call("SET", key, ARGV[2])
return 1
"""

_datetime_adapter = TypeAdapter(datetime)


def _wire_timestamp(value: datetime) -> str:
    """Serialize a timestamp exactly as the models do."""
    return _datetime_adapter.dump_python(value, mode="json")


class RedisWorkflowStore(WorkflowStore):
    """
    Store for multi-process deployments sharing one Redis.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "fsm:",
        connection: Optional[RedisConnection] = None,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self._connection = connection
        self._replace_script = client.register_script(REPLACE_INSTANCE_SCRIPT)

    @classmethod
    async def connect(cls, settings: RedisSettings) -> "RedisWorkflowStore":
        """Open a pooled connection and build a store that owns it."""
        connection = RedisConnection(settings)
        await connection.init()
        return cls(connection.client, key_prefix=settings.key_prefix, connection=connection)

    def _definition_key(self, definition_id: str) -> str:
        return f"{self.key_prefix}definition:{definition_id}"

    def _instance_key(self, instance_id: str) -> str:
        return f"{self.key_prefix}instance:{instance_id}"

    @property
    def _definitions_index(self) -> str:
        return f"{self.key_prefix}definitions"

    @property
    def _instances_index(self) -> str:
        return f"{self.key_prefix}instances"

    # ==================== Workflow Definitions ====================

    async def save_definition(self, definition: WorkflowDefinition) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(self._definition_key(definition.id), definition.model_dump_json(by_alias=True))
            pipe.sadd(self._definitions_index, definition.id)
            await pipe.execute()

    async def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        data = await self.client.get(self._definition_key(definition_id))
        if data:
            return WorkflowDefinition.model_validate_json(data)
        return None

    async def list_definitions(self) -> list[WorkflowDefinition]:
        ids = sorted(await self.client.smembers(self._definitions_index))
        if not ids:
            return []
        documents = await self.client.mget([self._definition_key(i) for i in ids])
        definitions = [WorkflowDefinition.model_validate_json(doc) for doc in documents if doc]
        return sorted(definitions, key=lambda d: d.created_at)

    # ==================== Workflow Instances ====================

    async def save_instance(self, instance: WorkflowInstance) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(self._instance_key(instance.id), instance.model_dump_json(by_alias=True))
            pipe.sadd(self._instances_index, instance.id)
            await pipe.execute()

    async def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        data = await self.client.get(self._instance_key(instance_id))
        if data:
            return WorkflowInstance.model_validate_json(data)
        return None

    async def list_instances(self) -> list[WorkflowInstance]:
        ids = sorted(await self.client.smembers(self._instances_index))
        if not ids:
            return []
        documents = await self.client.mget([self._instance_key(i) for i in ids])
        instances = [WorkflowInstance.model_validate_json(doc) for doc in documents if doc]
        return sorted(instances, key=lambda i: i.created_at)

    async def replace_instance(
        self,
        instance: WorkflowInstance,
        expected_last_updated: datetime,
    ) -> bool:
        outcome = await self._replace_script(
            keys=[self._instance_key(instance.id)],
            args=[
                _wire_timestamp(expected_last_updated),
                instance.model_dump_json(by_alias=True),
            ],
        )
        if outcome == -1:
            logger.warning(f"Instance {instance.id} vanished before replacement")
        return outcome == 1

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
