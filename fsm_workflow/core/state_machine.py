"""
Transition engine for workflow instances.

Each instance is a run of a deterministic finite automaton: the states are the
definition's states, the alphabet is its enabled actions, and final states are
absorbing. The engine is pure; it never touches storage and never mutates the
instance it is given.
"""

from datetime import datetime
from typing import Optional, Union

from fsm_workflow.core.models import (
    Action,
    HistoryEntry,
    State,
    WorkflowDefinition,
    WorkflowInstance,
    new_id,
    utcnow,
)
from fsm_workflow.core.result import Ok, ValidationError


class WorkflowStateMachine:
    """
    State machine for instances of one workflow definition.

    Preconditions for an action are checked in a fixed order and the first
    violated one is reported.
    """

    def __init__(self, definition: WorkflowDefinition):
        self.definition = definition
        self._states: dict[str, State] = {state.id: state for state in definition.states}
        self._actions: dict[str, Action] = {action.id: action for action in definition.actions}

    def initial_state(self) -> Optional[State]:
        """Get the state new instances start in."""
        return self.definition.initial_state

    def is_terminal(self, instance: WorkflowInstance) -> bool:
        """Check if the instance sits in a final state."""
        state = self._states.get(instance.current_state_id)
        return state is not None and state.is_final

    def start(
        self,
        instance_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Union[Ok[WorkflowInstance], ValidationError]:
        """
        Create a fresh instance positioned on the initial state.

        Args:
            instance_id: Identifier to use; generated when omitted
            now: Creation time; defaults to the current UTC time

        Returns:
            Ok with the new instance, or ValidationError if the definition
            has no unique initial state
        """
        initial = self.initial_state()
        if initial is None:
            return ValidationError(
                reason=f"Workflow definition '{self.definition.id}' has no initial state",
                code="NO_INITIAL_STATE",
            )

        timestamp = now or utcnow()
        instance = WorkflowInstance(
            id=instance_id or new_id(),
            definition_id=self.definition.id,
            current_state_id=initial.id,
            created_at=timestamp,
            last_updated=timestamp,
        )
        # A definition whose initial state is also final starts out completed
        if initial.is_final:
            instance.completed_at = timestamp
        return Ok(instance)

    def check(
        self,
        instance: WorkflowInstance,
        action_id: str,
    ) -> Union[Ok[Action], ValidationError]:
        """
        Decide whether an action may fire from the instance's current state.

        Returns:
            Ok with the resolved action, or the first violated precondition
        """
        action = self._actions.get(action_id)
        if action is None:
            return ValidationError(
                reason=f"Action '{action_id}' not found in workflow definition",
                code="ACTION_NOT_FOUND",
                details={"actionId": action_id},
            )

        if not action.enabled:
            return ValidationError(
                reason=f"Action '{action_id}' is disabled",
                code="ACTION_DISABLED",
                details={"actionId": action_id},
            )

        current = self._states.get(instance.current_state_id)
        if current is None:
            return ValidationError(
                reason=f"Current state '{instance.current_state_id}' not found in workflow definition",
                code="CURRENT_STATE_NOT_FOUND",
                details={"stateId": instance.current_state_id},
            )

        if current.is_final:
            return ValidationError(
                reason=f"Cannot act on a completed instance (final state '{current.id}')",
                code="INSTANCE_COMPLETED",
                details={"stateId": current.id},
            )

        if current.id not in action.from_states:
            return ValidationError(
                reason=(
                    f"Action '{action_id}' is not valid from current state "
                    f"'{current.id}'"
                ),
                code="INVALID_TRANSITION",
                details={"actionId": action_id, "stateId": current.id},
            )

        if action.to_state not in self._states:
            return ValidationError(
                reason=f"Target state '{action.to_state}' not found in workflow definition",
                code="TARGET_STATE_NOT_FOUND",
                details={"stateId": action.to_state},
            )

        return Ok(action)

    def execute(
        self,
        instance: WorkflowInstance,
        action_id: str,
        now: Optional[datetime] = None,
    ) -> Union[Ok[WorkflowInstance], ValidationError]:
        """
        Execute an action against an instance.

        Args:
            instance: Instance to advance; left untouched
            action_id: Action to fire
            now: Execution time; defaults to the current UTC time

        Returns:
            Ok with the updated copy of the instance, or ValidationError
        """
        checked = self.check(instance, action_id)
        if not isinstance(checked, Ok):
            return checked

        action = checked.value
        target = self._states[action.to_state]
        timestamp = now or utcnow()

        entry = HistoryEntry(
            action_id=action.id,
            action_name=action.name,
            from_state_id=instance.current_state_id,
            to_state_id=target.id,
            executed_at=timestamp,
        )

        updated = instance.model_copy(
            update={
                "current_state_id": target.id,
                "history": [*instance.history, entry],
                "last_updated": timestamp,
                "completed_at": timestamp if target.is_final else instance.completed_at,
            }
        )
        return Ok(updated)

    def available_actions(self, instance: WorkflowInstance) -> list[Action]:
        """Get all actions that may fire from the instance's current state."""
        return [
            action
            for action in self.definition.actions
            if isinstance(self.check(instance, action.id), Ok)
        ]


def execute_action(
    instance: WorkflowInstance,
    action_id: str,
    definition: WorkflowDefinition,
) -> Union[Ok[WorkflowInstance], ValidationError]:
    """Execute one action; see ``WorkflowStateMachine.execute``."""
    return WorkflowStateMachine(definition).execute(instance, action_id)
