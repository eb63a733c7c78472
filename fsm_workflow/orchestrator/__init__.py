"""Workflow orchestration services."""

from fsm_workflow.orchestrator.locks import InstanceLockRegistry
from fsm_workflow.orchestrator.service import WorkflowService

__all__ = ["InstanceLockRegistry", "WorkflowService"]
