"""Redis storage backend."""

from fsm_workflow.storage.redis.connection import RedisConnection
from fsm_workflow.storage.redis.store import RedisWorkflowStore

__all__ = ["RedisConnection", "RedisWorkflowStore"]
