"""
Domain models for the FSM workflow engine.

All models use Pydantic for validation and serialization. Python attributes are
snake_case; the wire and storage format is camelCase (see ``WireModel``).
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a new entity identifier."""
    return uuid4().hex


class WireModel(BaseModel):
    """
    Base for every model that crosses the HTTP or storage boundary.

    Accepts both ``fromStates`` and ``from_states`` on input and always
    dumps camelCase when ``by_alias=True``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Serialize to a JSON-compatible camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class State(WireModel):
    """A named state of a workflow definition."""

    id: str = Field(default="", description="Unique state identifier within the definition")
    name: str = Field(default="", description="Display name")
    is_initial: bool = Field(default=False, description="Instances start in this state")
    is_final: bool = Field(default=False, description="Absorbing state; no actions fire from it")
    enabled: bool = Field(default=True)
    description: Optional[str] = Field(default=None)


class Action(WireModel):
    """A named transition rule from a set of source states to one target state."""

    id: str = Field(default="", description="Unique action identifier within the definition")
    name: str = Field(default="", description="Display name")
    enabled: bool = Field(default=True)
    from_states: list[str] = Field(default_factory=list, description="Source state identifiers")
    to_state: str = Field(default="", description="Target state identifier")
    description: Optional[str] = Field(default=None)


class WorkflowDefinition(WireModel):
    """
    Complete workflow definition.

    Immutable once stored: there is no update path in the service, the stores
    or the API.
    """

    id: str = Field(default_factory=new_id, description="Unique workflow definition ID")
    name: str = Field(default="")
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    states: list[State] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)

    def get_state(self, state_id: str) -> Optional[State]:
        """Get state by ID."""
        for state in self.states:
            if state.id == state_id:
                return state
        return None

    def get_action(self, action_id: str) -> Optional[Action]:
        """Get action by ID."""
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    @property
    def initial_state(self) -> Optional[State]:
        """The unique initial state, or None if there is not exactly one."""
        initial = [state for state in self.states if state.is_initial]
        if len(initial) != 1:
            return None
        return initial[0]

    @property
    def final_states(self) -> list[State]:
        """States that end an instance."""
        return [state for state in self.states if state.is_final]


class HistoryEntry(WireModel):
    """Audit record of one executed transition."""

    model_config = ConfigDict(frozen=True)

    action_id: str
    # Captured at execution time, never looked up later
    action_name: str
    from_state_id: str
    to_state_id: str
    executed_at: datetime = Field(default_factory=utcnow)


class WorkflowInstance(WireModel):
    """Runtime state of one run of a workflow definition."""

    id: str = Field(default_factory=new_id, description="Unique workflow instance ID")
    definition_id: str = Field(..., description="Reference to workflow definition")
    current_state_id: str = Field(...)
    history: list[HistoryEntry] = Field(default_factory=list)

    # Timing
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = Field(default=None)

    @computed_field(alias="isCompleted")  # type: ignore[prop-decorator]
    @property
    def is_completed(self) -> bool:
        """An instance is completed once it has entered a final state."""
        return self.completed_at is not None


# ==================== Request Models ====================

class CreateDefinitionRequest(WireModel):
    """Request body for registering a workflow definition."""

    name: str = Field(default="")
    description: Optional[str] = Field(default=None)
    states: list[State] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Document Approval",
                "states": [
                    {"id": "draft", "name": "Draft", "isInitial": True},
                    {"id": "review", "name": "In Review"},
                    {"id": "approved", "name": "Approved", "isFinal": True},
                ],
                "actions": [
                    {"id": "submit", "name": "Submit", "fromStates": ["draft"], "toState": "review"},
                    {"id": "approve", "name": "Approve", "fromStates": ["review"], "toState": "approved"},
                ],
            }
        },
    )


class CreateInstanceRequest(WireModel):
    """Request body for starting a workflow instance."""

    definition_id: str = Field(..., description="Workflow definition to instantiate")


class ExecuteActionRequest(WireModel):
    """Request body for executing an action on an instance."""

    action_id: str = Field(..., description="Action to execute")
