"""
Workflow service.

Sequences validator and transition-engine calls around the store:
- Definition registration (validate, assign ID, persist)
- Instance creation (resolve definition, adopt initial state, persist)
- Action execution (lock, read, transition, compare-and-set write)
"""

import logging
from datetime import timedelta
from typing import Optional, Union

from fsm_workflow.core.models import (
    Action,
    CreateDefinitionRequest,
    WorkflowDefinition,
    WorkflowInstance,
    utcnow,
)
from fsm_workflow.core.result import ConflictError, Ok, ValidationError
from fsm_workflow.core.state_machine import WorkflowStateMachine
from fsm_workflow.core.validator import validate_definition
from fsm_workflow.orchestrator.locks import InstanceLockRegistry
from fsm_workflow.storage.base import WorkflowStore

logger = logging.getLogger(__name__)


class WorkflowService:
    """
    Entry point for the transport layer.

    Every operation maps 1:1 onto an HTTP route. Failed operations never
    write to the store.
    """

    def __init__(
        self,
        store: WorkflowStore,
        locks: Optional[InstanceLockRegistry] = None,
        max_conflict_retries: int = 3,
    ):
        self.store = store
        self.locks = locks or InstanceLockRegistry()
        self.max_conflict_retries = max_conflict_retries

    # ==================== Workflow Definitions ====================

    async def create_definition(
        self,
        request: CreateDefinitionRequest,
    ) -> Union[Ok[WorkflowDefinition], ValidationError]:
        """
        Validate and register a new workflow definition.

        Returns:
            Ok with the stored definition, or ValidationError
        """
        definition = WorkflowDefinition(
            name=request.name,
            description=request.description,
            states=request.states,
            actions=request.actions,
        )

        outcome = validate_definition(definition)
        if not isinstance(outcome, Ok):
            logger.info(f"Rejected workflow definition '{request.name}': {outcome.reason}")
            return outcome

        await self.store.save_definition(definition)

        logger.info(
            f"Workflow definition created: id={definition.id}, name={definition.name}, "
            f"states={len(definition.states)}, actions={len(definition.actions)}"
        )
        return Ok(definition)

    async def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        """Get workflow definition by ID."""
        return await self.store.get_definition(definition_id)

    async def list_definitions(self) -> list[WorkflowDefinition]:
        """Get all workflow definitions."""
        return await self.store.list_definitions()

    # ==================== Workflow Instances ====================

    async def create_instance(
        self,
        definition_id: str,
    ) -> Union[Ok[WorkflowInstance], ValidationError]:
        """
        Start a new instance of a definition on its initial state.

        Returns:
            Ok with the stored instance, or ValidationError if the definition
            is missing or has no initial state
        """
        definition = await self.store.get_definition(definition_id)
        if definition is None:
            return ValidationError(
                reason=f"Workflow definition '{definition_id}' not found",
                code="DEFINITION_NOT_FOUND",
                details={"definitionId": definition_id},
            )

        outcome = WorkflowStateMachine(definition).start()
        if not isinstance(outcome, Ok):
            return outcome

        instance = outcome.value
        await self.store.save_instance(instance)

        logger.info(
            f"Workflow instance created: id={instance.id}, definition={definition.id}, "
            f"state={instance.current_state_id}"
        )
        return outcome

    async def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        """Get workflow instance by ID."""
        return await self.store.get_instance(instance_id)

    async def list_instances(
        self,
        definition_id: Optional[str] = None,
    ) -> list[WorkflowInstance]:
        """Get all workflow instances, optionally only those of one definition."""
        instances = await self.store.list_instances()
        if definition_id is not None:
            instances = [i for i in instances if i.definition_id == definition_id]
        return instances

    async def _resolve(
        self,
        instance_id: str,
    ) -> Union[Ok[tuple[WorkflowInstance, WorkflowDefinition]], ValidationError]:
        """Load an instance together with its definition."""
        instance = await self.store.get_instance(instance_id)
        if instance is None:
            return ValidationError(
                reason=f"Workflow instance '{instance_id}' not found",
                code="INSTANCE_NOT_FOUND",
                details={"instanceId": instance_id},
            )

        definition = await self.store.get_definition(instance.definition_id)
        if definition is None:
            return ValidationError(
                reason=f"Workflow definition '{instance.definition_id}' not found",
                code="DEFINITION_NOT_FOUND",
                details={"definitionId": instance.definition_id},
            )

        return Ok((instance, definition))

    async def available_actions(
        self,
        instance_id: str,
    ) -> Union[Ok[list[Action]], ValidationError]:
        """Get the actions that may fire from an instance's current state."""
        resolved = await self._resolve(instance_id)
        if not isinstance(resolved, Ok):
            return resolved

        instance, definition = resolved.value
        return Ok(WorkflowStateMachine(definition).available_actions(instance))

    async def execute_action(
        self,
        instance_id: str,
        action_id: str,
    ) -> Union[Ok[WorkflowInstance], ValidationError, ConflictError]:
        """
        Execute an action on an instance.

        Runs under the instance's lock. The write is a compare-and-set on
        ``last_updated``; when another process wins the race the whole
        read/check/write is retried against the fresh copy.

        Returns:
            Ok with the updated instance, ValidationError if the action may
            not fire, or ConflictError once retries are exhausted
        """
        async with self.locks.hold(instance_id):
            for attempt in range(self.max_conflict_retries + 1):
                resolved = await self._resolve(instance_id)
                if not isinstance(resolved, Ok):
                    return resolved

                instance, definition = resolved.value

                # Keep last_updated strictly increasing so it works as a CAS token
                now = max(utcnow(), instance.last_updated + timedelta(microseconds=1))
                outcome = WorkflowStateMachine(definition).execute(instance, action_id, now=now)
                if not isinstance(outcome, Ok):
                    logger.warning(
                        f"Action '{action_id}' rejected for instance {instance_id}: "
                        f"{outcome.code}: {outcome.reason}"
                    )
                    return outcome

                updated = outcome.value
                if await self.store.replace_instance(updated, instance.last_updated):
                    logger.info(
                        f"Instance {instance_id}: '{action_id}' moved "
                        f"{instance.current_state_id} -> {updated.current_state_id}"
                        + (" (completed)" if updated.is_completed else "")
                    )
                    return outcome

                logger.warning(
                    f"Concurrent update on instance {instance_id} "
                    f"(attempt {attempt + 1}/{self.max_conflict_retries + 1})"
                )

        return ConflictError(
            reason=f"Workflow instance '{instance_id}' was modified concurrently; retry the action",
            details={"instanceId": instance_id, "actionId": action_id},
        )
