"""Storage layer for workflow persistence."""

from fsm_workflow.storage.base import StoreError, WorkflowStore
from fsm_workflow.storage.factory import create_store
from fsm_workflow.storage.file import JsonFileWorkflowStore
from fsm_workflow.storage.memory import InMemoryWorkflowStore

__all__ = [
    "StoreError",
    "WorkflowStore",
    "create_store",
    "JsonFileWorkflowStore",
    "InMemoryWorkflowStore",
]
