"""Builds the configured store backend."""

import logging

from fsm_workflow.config.settings import Settings, StorageBackend
from fsm_workflow.storage.base import WorkflowStore
from fsm_workflow.storage.file import JsonFileWorkflowStore
from fsm_workflow.storage.memory import InMemoryWorkflowStore
from fsm_workflow.storage.postgres.store import PostgresWorkflowStore
from fsm_workflow.storage.redis.store import RedisWorkflowStore

logger = logging.getLogger(__name__)


async def create_store(settings: Settings) -> WorkflowStore:
    """
    Create and connect the store selected by ``settings.storage.backend``.

    The caller owns the returned store and must ``close()`` it.
    """
    backend = settings.storage.backend

    if backend == StorageBackend.MEMORY:
        store: WorkflowStore = InMemoryWorkflowStore()
    elif backend == StorageBackend.FILE:
        store = JsonFileWorkflowStore(settings.storage.data_dir)
    elif backend == StorageBackend.REDIS:
        store = await RedisWorkflowStore.connect(settings.redis)
    elif backend == StorageBackend.POSTGRES:
        store = await PostgresWorkflowStore.connect(settings.postgres)
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")

    logger.info(f"Using {backend.value} store")
    return store
