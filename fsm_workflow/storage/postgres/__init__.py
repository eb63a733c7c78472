"""PostgreSQL storage backend."""

from fsm_workflow.storage.postgres.database import Database
from fsm_workflow.storage.postgres.models import (
    Base,
    WorkflowDefinitionModel,
    WorkflowInstanceModel,
)
from fsm_workflow.storage.postgres.store import PostgresWorkflowStore

__all__ = [
    "Database",
    "Base",
    "WorkflowDefinitionModel",
    "WorkflowInstanceModel",
    "PostgresWorkflowStore",
]
