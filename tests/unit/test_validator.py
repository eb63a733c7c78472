"""
Unit tests for workflow definition validation.
"""

from fsm_workflow.core.models import Action, State, WorkflowDefinition
from fsm_workflow.core.result import Ok, ValidationError
from fsm_workflow.core.validator import DefinitionValidator, validate_definition


def make_definition(states=None, actions=None, name="Test Workflow") -> WorkflowDefinition:
    return WorkflowDefinition(
        name=name,
        states=states if states is not None else [
            State(id="a", name="A", is_initial=True),
            State(id="b", name="B", is_final=True),
        ],
        actions=actions if actions is not None else [
            Action(id="go", name="Go", from_states=["a"], to_state="b"),
        ],
    )


class TestDefinitionValidator:
    """Tests for definition validation logic."""

    def test_valid_definition(self, approval_definition):
        """Test validation of a valid linear definition."""
        result = DefinitionValidator(approval_definition).validate()

        assert result.is_valid
        assert result.errors == []

    def test_empty_name(self):
        """Test that a blank name is rejected."""
        result = DefinitionValidator(make_definition(name="   ")).validate()

        assert not result.is_valid
        assert result.has_error("EMPTY_NAME")

    def test_no_states(self):
        """Test that a definition needs at least one state."""
        result = DefinitionValidator(make_definition(states=[], actions=[])).validate()

        assert result.has_error("NO_STATES")
        # Missing initial state is not reported twice for an empty definition
        assert not result.has_error("INITIAL_STATE_COUNT")

    def test_duplicate_state_ids(self):
        """Test detection of duplicate state IDs."""
        definition = make_definition(states=[
            State(id="a", name="A", is_initial=True),
            State(id="b", name="B"),
            State(id="b", name="B again"),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.has_error("DUPLICATE_STATE_ID")
        error = next(e for e in result.errors if e.code == "DUPLICATE_STATE_ID")
        assert error.details["duplicates"] == ["b"]

    def test_duplicate_action_ids(self):
        """Test detection of duplicate action IDs."""
        definition = make_definition(actions=[
            Action(id="go", name="Go", from_states=["a"], to_state="b"),
            Action(id="go", name="Go again", from_states=["a"], to_state="b"),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.has_error("DUPLICATE_ACTION_ID")

    def test_no_initial_state(self):
        """Test that a definition without an initial state is rejected."""
        definition = make_definition(states=[
            State(id="a", name="A"),
            State(id="b", name="B", is_final=True),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.has_error("INITIAL_STATE_COUNT")
        error = next(e for e in result.errors if e.code == "INITIAL_STATE_COUNT")
        assert "exactly one initial state" in error.message

    def test_multiple_initial_states(self):
        """Test that two initial states are rejected."""
        definition = make_definition(states=[
            State(id="a", name="A", is_initial=True),
            State(id="b", name="B", is_initial=True),
        ])

        result = DefinitionValidator(definition).validate()

        error = next(e for e in result.errors if e.code == "INITIAL_STATE_COUNT")
        assert "found 2" in error.message
        assert error.details["initial_states"] == ["a", "b"]

    def test_unknown_target_state(self):
        """Test detection of an action pointing at a missing state."""
        definition = make_definition(actions=[
            Action(id="go", name="Go", from_states=["a"], to_state="nonexistent"),
        ])

        result = DefinitionValidator(definition).validate()

        error = next(e for e in result.errors if e.code == "UNKNOWN_TARGET_STATE")
        assert "nonexistent" in error.message
        assert error.action_id == "go"
        assert error.state_id == "nonexistent"

    def test_empty_target_state(self):
        """Test that an action must name a target state."""
        definition = make_definition(actions=[
            Action(id="go", name="Go", from_states=["a"], to_state=""),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.has_error("EMPTY_TARGET_STATE")
        assert not result.has_error("UNKNOWN_TARGET_STATE")

    def test_unknown_source_state(self):
        """Test detection of a source state that does not exist."""
        definition = make_definition(actions=[
            Action(id="go", name="Go", from_states=["a", "ghost"], to_state="b"),
        ])

        result = DefinitionValidator(definition).validate()

        error = next(e for e in result.errors if e.code == "UNKNOWN_SOURCE_STATE")
        assert "ghost" in error.message

    def test_empty_state_id_and_name(self):
        """Test that state identifiers and names must be non-empty."""
        definition = make_definition(states=[
            State(id="a", name="A", is_initial=True),
            State(id="", name="Nameless id"),
            State(id="c", name="  "),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.has_error("EMPTY_STATE_ID")
        assert result.has_error("EMPTY_STATE_NAME")

    def test_empty_action_id(self):
        """Test that action identifiers must be non-empty."""
        definition = make_definition(actions=[
            Action(id="", name="Go", from_states=["a"], to_state="b"),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.has_error("EMPTY_ACTION_ID")

    def test_all_violations_reported(self):
        """Test that validation does not stop at the first error."""
        definition = WorkflowDefinition(
            name="",
            states=[State(id="a", name="A"), State(id="a", name="A")],
            actions=[Action(id="x", name="X", from_states=["zz"], to_state="yy")],
        )

        result = DefinitionValidator(definition).validate()

        codes = {e.code for e in result.errors}
        assert codes >= {
            "EMPTY_NAME",
            "DUPLICATE_STATE_ID",
            "INITIAL_STATE_COUNT",
            "UNKNOWN_TARGET_STATE",
            "UNKNOWN_SOURCE_STATE",
        }

    # Edge cases
    def test_action_without_source_states_is_valid(self, ticket_definition):
        """Test that empty fromStates is legal but flagged as a warning."""
        result = DefinitionValidator(ticket_definition).validate()

        assert result.is_valid
        warning = next(w for w in result.warnings if w.code == "UNREACHABLE_ACTION")
        assert warning.action_id == "orphan"

    def test_definition_without_actions_is_valid(self):
        """Test that a single-state definition with no actions is accepted."""
        definition = make_definition(
            states=[State(id="only", name="Only", is_initial=True, is_final=True)],
            actions=[],
        )

        assert DefinitionValidator(definition).validate().is_valid

    def test_disabled_initial_state_warns(self):
        """Test that a disabled initial state only produces a warning."""
        definition = make_definition(states=[
            State(id="a", name="A", is_initial=True, enabled=False),
            State(id="b", name="B", is_final=True),
        ])

        result = DefinitionValidator(definition).validate()

        assert result.is_valid
        assert any(w.code == "DISABLED_INITIAL_STATE" for w in result.warnings)

    def test_unreachable_states_are_not_errors(self):
        """Test that no reachability analysis is performed."""
        definition = make_definition(states=[
            State(id="a", name="A", is_initial=True),
            State(id="b", name="B", is_final=True),
            State(id="island", name="Island"),
        ])

        assert DefinitionValidator(definition).validate().is_valid


class TestValidateDefinition:
    """Tests for the result-returning wrapper."""

    def test_ok_for_valid_definition(self, approval_definition):
        outcome = validate_definition(approval_definition)

        assert isinstance(outcome, Ok)
        assert outcome.value is approval_definition

    def test_first_error_becomes_reason(self):
        """Test that the reason is the first error and all issues are listed."""
        definition = make_definition(
            states=[State(id="a", name="A"), State(id="b", name="B")],
            actions=[Action(id="go", name="Go", from_states=["a"], to_state="nonexistent")],
        )

        outcome = validate_definition(definition)

        assert isinstance(outcome, ValidationError)
        assert outcome.code == "INITIAL_STATE_COUNT"
        assert "exactly one initial state" in outcome.reason
        codes = [issue["code"] for issue in outcome.details["issues"]]
        assert codes == ["INITIAL_STATE_COUNT", "UNKNOWN_TARGET_STATE"]
