"""
JSON file store.

Keeps ``definitions.json`` and ``instances.json`` in a data directory, each a
camelCase JSON array. Every write rewrites the whole file through a temporary
file and an atomic rename.
"""

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from fsm_workflow.core.models import WorkflowDefinition, WorkflowInstance
from fsm_workflow.storage.base import StoreError, WorkflowStore

logger = logging.getLogger(__name__)


class JsonFileWorkflowStore(WorkflowStore):
    """
    File-backed store for single-process deployments.

    File I/O runs in a worker thread; an asyncio lock serializes
    read-modify-write cycles on the files.
    """

    DEFINITIONS_FILE = "definitions.json"
    INSTANCES_FILE = "instances.json"

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    @property
    def definitions_path(self) -> Path:
        return self.data_dir / self.DEFINITIONS_FILE

    @property
    def instances_path(self) -> Path:
        return self.data_dir / self.INSTANCES_FILE

    # ==================== File Helpers ====================

    @staticmethod
    def _read_documents(path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt store file {path}: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"Corrupt store file {path}: expected a JSON array")
        return data

    @staticmethod
    def _write_documents(path: Path, documents: list[dict[str, Any]]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(documents, fh, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def _load_definitions(self) -> list[WorkflowDefinition]:
        documents = await asyncio.to_thread(self._read_documents, self.definitions_path)
        try:
            return [WorkflowDefinition.model_validate(doc) for doc in documents]
        except PydanticValidationError as e:
            raise StoreError(f"Invalid definition in {self.definitions_path}: {e}") from e

    async def _load_instances(self) -> list[WorkflowInstance]:
        documents = await asyncio.to_thread(self._read_documents, self.instances_path)
        try:
            return [WorkflowInstance.model_validate(doc) for doc in documents]
        except PydanticValidationError as e:
            raise StoreError(f"Invalid instance in {self.instances_path}: {e}") from e

    async def _dump_definitions(self, definitions: list[WorkflowDefinition]) -> None:
        documents = [d.to_document() for d in definitions]
        await asyncio.to_thread(self._write_documents, self.definitions_path, documents)

    async def _dump_instances(self, instances: list[WorkflowInstance]) -> None:
        documents = [i.to_document() for i in instances]
        await asyncio.to_thread(self._write_documents, self.instances_path, documents)

    # ==================== Workflow Definitions ====================

    async def save_definition(self, definition: WorkflowDefinition) -> None:
        async with self._lock:
            definitions = [d for d in await self._load_definitions() if d.id != definition.id]
            definitions.append(definition)
            await self._dump_definitions(definitions)
        logger.debug(f"Wrote definition {definition.id} to {self.definitions_path}")

    async def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        for definition in await self._load_definitions():
            if definition.id == definition_id:
                return definition
        return None

    async def list_definitions(self) -> list[WorkflowDefinition]:
        return await self._load_definitions()

    # ==================== Workflow Instances ====================

    async def save_instance(self, instance: WorkflowInstance) -> None:
        async with self._lock:
            instances = [i for i in await self._load_instances() if i.id != instance.id]
            instances.append(instance)
            await self._dump_instances(instances)
        logger.debug(f"Wrote instance {instance.id} to {self.instances_path}")

    async def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        for instance in await self._load_instances():
            if instance.id == instance_id:
                return instance
        return None

    async def list_instances(self) -> list[WorkflowInstance]:
        return await self._load_instances()

    async def replace_instance(
        self,
        instance: WorkflowInstance,
        expected_last_updated: datetime,
    ) -> bool:
        async with self._lock:
            instances = await self._load_instances()
            for index, stored in enumerate(instances):
                if stored.id != instance.id:
                    continue
                if stored.last_updated != expected_last_updated:
                    return False
                instances[index] = instance
                await self._dump_instances(instances)
                return True
            return False

    async def health_check(self) -> bool:
        return self.data_dir.is_dir() and os.access(self.data_dir, os.W_OK)
