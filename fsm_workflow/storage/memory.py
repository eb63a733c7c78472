"""In-process store backed by dictionaries."""

import asyncio
from datetime import datetime
from typing import Optional

from fsm_workflow.core.models import WorkflowDefinition, WorkflowInstance
from fsm_workflow.storage.base import WorkflowStore


class InMemoryWorkflowStore(WorkflowStore):
    """
    Dictionary-backed store.

    Objects are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self):
        self._definitions: dict[str, WorkflowDefinition] = {}
        self._instances: dict[str, WorkflowInstance] = {}
        self._lock = asyncio.Lock()

    async def save_definition(self, definition: WorkflowDefinition) -> None:
        self._definitions[definition.id] = definition.model_copy(deep=True)

    async def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        definition = self._definitions.get(definition_id)
        return definition.model_copy(deep=True) if definition else None

    async def list_definitions(self) -> list[WorkflowDefinition]:
        return [d.model_copy(deep=True) for d in self._definitions.values()]

    async def save_instance(self, instance: WorkflowInstance) -> None:
        async with self._lock:
            self._instances[instance.id] = instance.model_copy(deep=True)

    async def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        instance = self._instances.get(instance_id)
        return instance.model_copy(deep=True) if instance else None

    async def list_instances(self) -> list[WorkflowInstance]:
        return [i.model_copy(deep=True) for i in self._instances.values()]

    async def replace_instance(
        self,
        instance: WorkflowInstance,
        expected_last_updated: datetime,
    ) -> bool:
        async with self._lock:
            stored = self._instances.get(instance.id)
            if stored is None or stored.last_updated != expected_last_updated:
                return False
            self._instances[instance.id] = instance.model_copy(deep=True)
            return True
