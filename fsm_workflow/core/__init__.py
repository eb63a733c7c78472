"""Core domain models and business logic."""

from fsm_workflow.core.models import (
    Action,
    CreateDefinitionRequest,
    CreateInstanceRequest,
    ExecuteActionRequest,
    HistoryEntry,
    State,
    WorkflowDefinition,
    WorkflowInstance,
)
from fsm_workflow.core.result import ConflictError, Ok, Result, ValidationError, is_ok
from fsm_workflow.core.state_machine import WorkflowStateMachine, execute_action
from fsm_workflow.core.validator import (
    DefinitionValidator,
    ValidationIssue,
    ValidationResult,
    validate_definition,
)

__all__ = [
    "Action",
    "CreateDefinitionRequest",
    "CreateInstanceRequest",
    "ExecuteActionRequest",
    "HistoryEntry",
    "State",
    "WorkflowDefinition",
    "WorkflowInstance",
    "ConflictError",
    "Ok",
    "Result",
    "ValidationError",
    "is_ok",
    "WorkflowStateMachine",
    "execute_action",
    "DefinitionValidator",
    "ValidationIssue",
    "ValidationResult",
    "validate_definition",
]
