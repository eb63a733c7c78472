"""
Unit tests for instance transitions.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from fsm_workflow.core.models import Action, State, WorkflowDefinition, WorkflowInstance
from fsm_workflow.core.result import Ok, ValidationError
from fsm_workflow.core.state_machine import WorkflowStateMachine, execute_action


def start(definition: WorkflowDefinition) -> WorkflowInstance:
    outcome = WorkflowStateMachine(definition).start()
    assert isinstance(outcome, Ok)
    return outcome.value


def run(definition: WorkflowDefinition, instance: WorkflowInstance, *action_ids: str) -> WorkflowInstance:
    machine = WorkflowStateMachine(definition)
    for action_id in action_ids:
        outcome = machine.execute(instance, action_id)
        assert isinstance(outcome, Ok), outcome
        instance = outcome.value
    return instance


class TestStart:
    """Tests for instance creation."""

    def test_starts_on_initial_state(self, approval_definition):
        """Test that a new instance adopts the initial state."""
        instance = start(approval_definition)

        assert instance.current_state_id == "draft"
        assert instance.definition_id == approval_definition.id
        assert instance.history == []
        assert not instance.is_completed
        assert instance.created_at == instance.last_updated

    def test_uses_given_id_and_time(self, approval_definition):
        """Test explicit identifier and timestamp."""
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)

        outcome = WorkflowStateMachine(approval_definition).start(instance_id="inst-1", now=now)

        assert outcome.value.id == "inst-1"
        assert outcome.value.created_at == now

    def test_no_initial_state(self):
        """Test that a definition without an initial state cannot start."""
        definition = WorkflowDefinition(name="Broken", states=[State(id="a", name="A")])

        outcome = WorkflowStateMachine(definition).start()

        assert isinstance(outcome, ValidationError)
        assert outcome.code == "NO_INITIAL_STATE"

    def test_initial_final_state_starts_completed(self):
        """Test that an instance born in a final state is already completed."""
        definition = WorkflowDefinition(
            name="Trivial",
            states=[State(id="done", name="Done", is_initial=True, is_final=True)],
        )

        instance = start(definition)

        assert instance.is_completed


class TestExecute:
    """Tests for action execution."""

    def test_valid_transition(self, approval_definition):
        """Test a legal transition moves the instance and records history."""
        instance = start(approval_definition)

        outcome = WorkflowStateMachine(approval_definition).execute(instance, "submit")

        assert isinstance(outcome, Ok)
        updated = outcome.value
        assert updated.current_state_id == "review"
        assert len(updated.history) == 1
        entry = updated.history[0]
        assert entry.action_id == "submit"
        assert entry.action_name == "Submit"
        assert entry.from_state_id == "draft"
        assert entry.to_state_id == "review"
        assert not updated.is_completed

    def test_input_instance_not_mutated(self, approval_definition):
        """Test that execution returns a copy and leaves the input alone."""
        instance = start(approval_definition)
        before = instance.model_copy(deep=True)

        WorkflowStateMachine(approval_definition).execute(instance, "submit")

        assert instance == before

    def test_reaching_final_state_completes(self, approval_definition):
        """Test the full draft -> review -> approved run."""
        instance = run(approval_definition, start(approval_definition), "submit", "approve")

        assert instance.current_state_id == "approved"
        assert instance.is_completed
        assert instance.completed_at == instance.last_updated
        assert len(instance.history) == 2

    def test_timestamps(self, approval_definition):
        """Test that last_updated and executed_at use the execution time."""
        instance = start(approval_definition)
        later = instance.created_at + timedelta(minutes=5)

        outcome = WorkflowStateMachine(approval_definition).execute(instance, "submit", now=later)

        assert outcome.value.last_updated == later
        assert outcome.value.history[0].executed_at == later
        assert outcome.value.created_at == instance.created_at

    def test_history_from_state_matches_previous_state(self, ticket_definition):
        """Test that each entry starts where the previous one ended."""
        instance = run(
            ticket_definition,
            start(ticket_definition),
            "start", "ask", "start", "ask", "close",
        )

        assert len(instance.history) == 5
        previous = "open"
        for entry in instance.history:
            assert entry.from_state_id == previous
            previous = entry.to_state_id
        assert instance.current_state_id == "closed"

    def test_history_entries_are_immutable(self, approval_definition):
        """Test that recorded transitions cannot be edited."""
        instance = run(approval_definition, start(approval_definition), "submit")

        with pytest.raises(PydanticValidationError):
            instance.history[0].action_name = "Renamed"

        assert instance.history[0].action_name == "Submit"


class TestPreconditions:
    """Tests for transition preconditions and their order."""

    def test_action_not_found(self, approval_definition):
        outcome = execute_action(start(approval_definition), "publish", approval_definition)

        assert isinstance(outcome, ValidationError)
        assert outcome.code == "ACTION_NOT_FOUND"

    def test_action_disabled(self, ticket_definition):
        outcome = execute_action(start(ticket_definition), "escalate", ticket_definition)

        assert isinstance(outcome, ValidationError)
        assert outcome.code == "ACTION_DISABLED"

    def test_current_state_not_found(self, approval_definition):
        """Test an instance pointing at a state the definition lacks."""
        instance = WorkflowInstance(definition_id=approval_definition.id, current_state_id="limbo")

        outcome = execute_action(instance, "submit", approval_definition)

        assert outcome.code == "CURRENT_STATE_NOT_FOUND"

    def test_final_state_blocks_every_action(self, approval_definition):
        """Test that completed instances reject even otherwise valid actions."""
        instance = run(approval_definition, start(approval_definition), "submit", "approve")

        for action_id in ("submit", "approve"):
            outcome = execute_action(instance, action_id, approval_definition)
            assert isinstance(outcome, ValidationError)
            assert outcome.code == "INSTANCE_COMPLETED"

    def test_final_state_checked_before_source_states(self):
        """Test that an action listing the final state as a source still fails."""
        definition = WorkflowDefinition(
            name="Reopen",
            states=[
                State(id="open", name="Open", is_initial=True),
                State(id="done", name="Done", is_final=True),
            ],
            actions=[
                Action(id="finish", name="Finish", from_states=["open"], to_state="done"),
                Action(id="reopen", name="Reopen", from_states=["done"], to_state="open"),
            ],
        )
        instance = run(definition, start(definition), "finish")

        outcome = execute_action(instance, "reopen", definition)

        assert outcome.code == "INSTANCE_COMPLETED"

    def test_action_not_valid_from_current_state(self, approval_definition):
        outcome = execute_action(start(approval_definition), "approve", approval_definition)

        assert isinstance(outcome, ValidationError)
        assert outcome.code == "INVALID_TRANSITION"
        assert "draft" in outcome.reason

    def test_target_state_not_found(self):
        """Test the defensive check on an unvalidated definition."""
        definition = WorkflowDefinition(
            name="Unvalidated",
            states=[State(id="a", name="A", is_initial=True)],
            actions=[Action(id="go", name="Go", from_states=["a"], to_state="nowhere")],
        )

        outcome = execute_action(start(definition), "go", definition)

        assert outcome.code == "TARGET_STATE_NOT_FOUND"

    def test_disabled_checked_before_source_states(self, ticket_definition):
        """Test fail-fast ordering: disabled wins over wrong source state."""
        instance = run(ticket_definition, start(ticket_definition), "start")

        outcome = execute_action(instance, "escalate", ticket_definition)

        assert outcome.code == "ACTION_DISABLED"

    def test_action_without_source_states_never_fires(self, ticket_definition):
        """Test that an action with empty fromStates is unreachable."""
        machine = WorkflowStateMachine(ticket_definition)
        instance = start(ticket_definition)

        for action_id in ("start", "ask"):
            outcome = machine.execute(instance, "orphan")
            assert outcome.code == "INVALID_TRANSITION"
            instance = machine.execute(instance, action_id).value


class TestAvailableActions:
    """Tests for listing legal actions."""

    def test_available_from_initial_state(self, ticket_definition):
        machine = WorkflowStateMachine(ticket_definition)

        actions = machine.available_actions(start(ticket_definition))

        # escalate is disabled, orphan has no source states
        assert [a.id for a in actions] == ["start", "close"]

    def test_none_available_when_completed(self, approval_definition):
        instance = run(approval_definition, start(approval_definition), "submit", "approve")

        machine = WorkflowStateMachine(approval_definition)

        assert machine.available_actions(instance) == []
        assert machine.is_terminal(instance)

    @pytest.mark.parametrize(
        "path, expected",
        [
            ((), ["submit"]),
            (("submit",), ["approve"]),
        ],
    )
    def test_available_along_the_way(self, approval_definition, path, expected):
        instance = run(approval_definition, start(approval_definition), *path)

        actions = WorkflowStateMachine(approval_definition).available_actions(instance)

        assert [a.id for a in actions] == expected
