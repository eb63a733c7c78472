"""
Persistence interface consumed by the orchestration service.

Definitions are written once; instances are written on creation and then only
replaced through ``replace_instance``, an atomic compare-and-set keyed on the
instance's ``last_updated`` timestamp.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from fsm_workflow.core.models import WorkflowDefinition, WorkflowInstance


class StoreError(Exception):
    """Raised when persisted data cannot be read or written."""


class WorkflowStore(ABC):
    """Keyed persistence for workflow definitions and instances."""

    # ==================== Workflow Definitions ====================

    @abstractmethod
    async def save_definition(self, definition: WorkflowDefinition) -> None:
        """Persist a new workflow definition."""

    @abstractmethod
    async def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        """Get workflow definition by ID."""

    @abstractmethod
    async def list_definitions(self) -> list[WorkflowDefinition]:
        """Get all workflow definitions."""

    # ==================== Workflow Instances ====================

    @abstractmethod
    async def save_instance(self, instance: WorkflowInstance) -> None:
        """Persist an instance, overwriting any stored copy."""

    @abstractmethod
    async def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        """Get workflow instance by ID."""

    @abstractmethod
    async def list_instances(self) -> list[WorkflowInstance]:
        """Get all workflow instances."""

    @abstractmethod
    async def replace_instance(
        self,
        instance: WorkflowInstance,
        expected_last_updated: datetime,
    ) -> bool:
        """
        Atomically replace a stored instance.

        The write only happens when the stored copy still carries
        ``expected_last_updated``.

        Returns:
            True if the instance was written, False if the stored copy changed
            (or vanished) in the meantime
        """

    async def health_check(self) -> bool:
        """Check that the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
