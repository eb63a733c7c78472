"""
Structural validation of workflow definitions.

Runs every check and collects all violations; no reachability or cycle
analysis is performed.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from fsm_workflow.core.models import WorkflowDefinition
from fsm_workflow.core.result import Ok, ValidationError


@dataclass
class ValidationIssue:
    """Represents a single validation error or warning."""

    code: str
    message: str
    state_id: Optional[str] = None
    action_id: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.state_id is not None:
            data["stateId"] = self.state_id
        if self.action_id is not None:
            data["actionId"] = self.action_id
        if self.details:
            data["details"] = self.details
        return data


@dataclass
class ValidationResult:
    """Result of definition validation."""

    is_valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def add_error(
        self,
        code: str,
        message: str,
        state_id: Optional[str] = None,
        action_id: Optional[str] = None,
        **details: Any,
    ) -> None:
        """Add a validation error."""
        self.errors.append(ValidationIssue(code, message, state_id, action_id, details))
        self.is_valid = False

    def add_warning(
        self,
        code: str,
        message: str,
        state_id: Optional[str] = None,
        action_id: Optional[str] = None,
        **details: Any,
    ) -> None:
        """Add a validation warning."""
        self.warnings.append(ValidationIssue(code, message, state_id, action_id, details))

    def has_error(self, code: str) -> bool:
        return any(e.code == code for e in self.errors)


class DefinitionValidator:
    """
    Validates the structure of a workflow definition before it is stored.

    Checks names and identifiers, uniqueness of ids, the single initial
    state and that every action references existing states.
    """

    def __init__(self, definition: WorkflowDefinition):
        self.definition = definition
        self._state_ids = {state.id for state in definition.states}

    def validate(self) -> ValidationResult:
        """
        Perform full validation of the definition.

        Returns:
            ValidationResult with every error and warning found
        """
        result = ValidationResult(is_valid=True)

        self._validate_name(result)
        self._validate_states_present(result)
        self._validate_unique_state_ids(result)
        self._validate_unique_action_ids(result)
        self._validate_single_initial_state(result)
        self._validate_action_references(result)
        self._validate_state_fields(result)
        self._validate_action_fields(result)
        self._check_unreachable_actions(result)

        return result

    def _validate_name(self, result: ValidationResult) -> None:
        if not self.definition.name.strip():
            result.add_error(
                code="EMPTY_NAME",
                message="Definition name is required",
            )

    def _validate_states_present(self, result: ValidationResult) -> None:
        if not self.definition.states:
            result.add_error(
                code="NO_STATES",
                message="Definition must have at least one state",
            )

    def _validate_state_fields(self, result: ValidationResult) -> None:
        """Every state needs a non-empty id and name."""
        for index, state in enumerate(self.definition.states):
            if not state.id.strip():
                result.add_error(
                    code="EMPTY_STATE_ID",
                    message=f"State at position {index} has an empty id",
                    position=index,
                )
            if not state.name.strip():
                result.add_error(
                    code="EMPTY_STATE_NAME",
                    message=f"State '{state.id}' has an empty name",
                    state_id=state.id,
                )

    def _validate_action_fields(self, result: ValidationResult) -> None:
        for index, action in enumerate(self.definition.actions):
            if not action.id.strip():
                result.add_error(
                    code="EMPTY_ACTION_ID",
                    message=f"Action at position {index} has an empty id",
                    position=index,
                )

    def _validate_unique_state_ids(self, result: ValidationResult) -> None:
        counts = Counter(state.id for state in self.definition.states)
        duplicates = sorted(state_id for state_id, count in counts.items() if count > 1)
        if duplicates:
            result.add_error(
                code="DUPLICATE_STATE_ID",
                message=f"Duplicate state IDs found: {duplicates}",
                duplicates=duplicates,
            )

    def _validate_unique_action_ids(self, result: ValidationResult) -> None:
        counts = Counter(action.id for action in self.definition.actions)
        duplicates = sorted(action_id for action_id, count in counts.items() if count > 1)
        if duplicates:
            result.add_error(
                code="DUPLICATE_ACTION_ID",
                message=f"Duplicate action IDs found: {duplicates}",
                duplicates=duplicates,
            )

    def _validate_single_initial_state(self, result: ValidationResult) -> None:
        # An empty state list is already reported as NO_STATES
        if not self.definition.states:
            return

        initial = [state for state in self.definition.states if state.is_initial]
        if len(initial) != 1:
            result.add_error(
                code="INITIAL_STATE_COUNT",
                message=(
                    "Definition must have exactly one initial state "
                    f"(found {len(initial)})"
                ),
                initial_states=[state.id for state in initial],
            )
        elif not initial[0].enabled:
            result.add_warning(
                code="DISABLED_INITIAL_STATE",
                message=f"Initial state '{initial[0].id}' is marked disabled",
                state_id=initial[0].id,
            )

    def _validate_action_references(self, result: ValidationResult) -> None:
        """Validate that toState and every fromStates entry name existing states."""
        for action in self.definition.actions:
            if not action.to_state.strip():
                result.add_error(
                    code="EMPTY_TARGET_STATE",
                    message=f"Action '{action.id}' has an empty target state",
                    action_id=action.id,
                )
            elif action.to_state not in self._state_ids:
                result.add_error(
                    code="UNKNOWN_TARGET_STATE",
                    message=(
                        f"Action '{action.id}' references unknown target state "
                        f"'{action.to_state}'"
                    ),
                    action_id=action.id,
                    state_id=action.to_state,
                )

            for from_state in action.from_states:
                if from_state not in self._state_ids:
                    result.add_error(
                        code="UNKNOWN_SOURCE_STATE",
                        message=(
                            f"Action '{action.id}' references unknown source state "
                            f"'{from_state}'"
                        ),
                        action_id=action.id,
                        state_id=from_state,
                    )

    def _check_unreachable_actions(self, result: ValidationResult) -> None:
        """Actions without source states are legal but can never fire."""
        for action in self.definition.actions:
            if not action.from_states:
                result.add_warning(
                    code="UNREACHABLE_ACTION",
                    message=f"Action '{action.id}' has no source states and can never fire",
                    action_id=action.id,
                )


def validate_definition(
    definition: WorkflowDefinition,
) -> Union[Ok[WorkflowDefinition], ValidationError]:
    """
    Validate a definition and fold the outcome into a result value.

    The first error becomes the reason; all errors are listed under
    ``details["issues"]``.
    """
    result = DefinitionValidator(definition).validate()

    if result.is_valid:
        return Ok(definition)

    first = result.errors[0]
    return ValidationError(
        reason=first.message,
        code=first.code,
        details={"issues": [issue.to_dict() for issue in result.errors]},
    )
