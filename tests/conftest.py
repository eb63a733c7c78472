"""
Pytest fixtures and configuration for tests.
"""

import pytest
import pytest_asyncio

from fsm_workflow.config import Environment, Settings
from fsm_workflow.core.models import CreateDefinitionRequest, WorkflowDefinition
from fsm_workflow.orchestrator.service import WorkflowService
from fsm_workflow.storage.memory import InMemoryWorkflowStore


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        environment=Environment.TEST,
        debug=True,
        log_level="DEBUG",
    )


@pytest.fixture
def approval_workflow() -> dict:
    """Document approval workflow: draft -> review -> approved."""
    return {
        "name": "Document Approval",
        "description": "Two-step approval",
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


@pytest.fixture
def ticket_workflow() -> dict:
    """
    Support ticket workflow with a loop, a disabled action and an action
    that has no source states.
    """
    return {
        "name": "Support Ticket",
        "states": [
            {"id": "open", "name": "Open", "isInitial": True},
            {"id": "in_progress", "name": "In Progress"},
            {"id": "waiting", "name": "Waiting on Customer"},
            {"id": "closed", "name": "Closed", "isFinal": True},
        ],
        "actions": [
            {"id": "start", "name": "Start", "fromStates": ["open", "waiting"], "toState": "in_progress"},
            {"id": "ask", "name": "Ask Customer", "fromStates": ["in_progress"], "toState": "waiting"},
            {"id": "close", "name": "Close", "fromStates": ["open", "in_progress", "waiting"], "toState": "closed"},
            {"id": "escalate", "name": "Escalate", "enabled": False, "fromStates": ["open"], "toState": "in_progress"},
            {"id": "orphan", "name": "Orphan", "fromStates": [], "toState": "closed"},
        ],
    }


@pytest.fixture
def approval_definition(approval_workflow) -> WorkflowDefinition:
    """Approval workflow as a definition model."""
    return WorkflowDefinition.model_validate(approval_workflow)


@pytest.fixture
def ticket_definition(ticket_workflow) -> WorkflowDefinition:
    """Ticket workflow as a definition model."""
    return WorkflowDefinition.model_validate(ticket_workflow)


@pytest.fixture
def approval_request(approval_workflow) -> CreateDefinitionRequest:
    return CreateDefinitionRequest.model_validate(approval_workflow)


@pytest.fixture
def memory_store() -> InMemoryWorkflowStore:
    return InMemoryWorkflowStore()


@pytest_asyncio.fixture
async def service(memory_store) -> WorkflowService:
    """Workflow service on an in-memory store."""
    return WorkflowService(memory_store)
