"""
FastAPI routes for the workflow engine API.

Implements the core API endpoints:
- POST /workflows - Register a workflow definition
- GET /workflows, GET /workflows/:id - Read definitions
- POST /instances - Start an instance of a definition
- GET /instances, GET /instances/:id - Read instances
- GET /instances/:id/actions - Actions that may fire now
- POST /instances/:id/execute - Execute an action
- GET /health - Health check
"""

from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from fsm_workflow import __version__
from fsm_workflow.core.models import (
    Action,
    CreateDefinitionRequest,
    CreateInstanceRequest,
    ExecuteActionRequest,
    WorkflowDefinition,
    WorkflowInstance,
)
from fsm_workflow.core.result import ConflictError, Ok, ValidationError
from fsm_workflow.orchestrator.service import WorkflowService

router = APIRouter(prefix="/v1", tags=["workflows"])


# ==================== Response Models ====================

class ErrorResponse(BaseModel):
    """Body of every failed request."""

    error: str
    code: str
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    services: dict[str, str]


ERROR_RESPONSES: dict[Union[int, str], dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
}


def failure_response(failure: Union[ValidationError, ConflictError]) -> JSONResponse:
    """Map a core failure onto an HTTP error response."""
    status_code = (
        status.HTTP_409_CONFLICT
        if isinstance(failure, ConflictError)
        else status.HTTP_400_BAD_REQUEST
    )
    body = ErrorResponse(error=failure.reason, code=failure.code, details=failure.details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def not_found_response(code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=message, code=code)
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump())


# ==================== Dependency Injection ====================

async def get_service(request: Request) -> WorkflowService:
    """Get workflow service from app state."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Workflow service not initialized",
        )
    return service


# ==================== Workflow Definition Routes ====================

@router.post(
    "/workflows",
    response_model=WorkflowDefinition,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Register a workflow definition",
    description="Validate and store a definition of states and actions. Definitions are immutable.",
)
async def create_definition(
    request: CreateDefinitionRequest,
    service: WorkflowService = Depends(get_service),
):
    """Register a new workflow definition."""
    outcome = await service.create_definition(request)
    if not isinstance(outcome, Ok):
        return failure_response(outcome)
    return outcome.value


@router.get(
    "/workflows",
    response_model=list[WorkflowDefinition],
    summary="List workflow definitions",
)
async def list_definitions(
    service: WorkflowService = Depends(get_service),
) -> list[WorkflowDefinition]:
    """List all workflow definitions."""
    return await service.list_definitions()


@router.get(
    "/workflows/{definition_id}",
    response_model=WorkflowDefinition,
    responses=ERROR_RESPONSES,
    summary="Get a workflow definition",
)
async def get_definition(
    definition_id: str,
    service: WorkflowService = Depends(get_service),
):
    """Get a workflow definition by ID."""
    definition = await service.get_definition(definition_id)
    if definition is None:
        return not_found_response(
            "DEFINITION_NOT_FOUND",
            f"Workflow definition not found: {definition_id}",
        )
    return definition


# ==================== Workflow Instance Routes ====================

@router.post(
    "/instances",
    response_model=WorkflowInstance,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Start a workflow instance",
    description="Create an instance positioned on the definition's initial state.",
)
async def create_instance(
    request: CreateInstanceRequest,
    service: WorkflowService = Depends(get_service),
):
    """Start a new instance of a workflow definition."""
    outcome = await service.create_instance(request.definition_id)
    if not isinstance(outcome, Ok):
        return failure_response(outcome)
    return outcome.value


@router.get(
    "/instances",
    response_model=list[WorkflowInstance],
    summary="List workflow instances",
)
async def list_instances(
    definition_id: Optional[str] = Query(default=None, alias="definitionId"),
    service: WorkflowService = Depends(get_service),
) -> list[WorkflowInstance]:
    """List workflow instances, optionally filtered by definition."""
    return await service.list_instances(definition_id)


@router.get(
    "/instances/{instance_id}",
    response_model=WorkflowInstance,
    responses=ERROR_RESPONSES,
    summary="Get a workflow instance",
)
async def get_instance(
    instance_id: str,
    service: WorkflowService = Depends(get_service),
):
    """Get a workflow instance by ID."""
    instance = await service.get_instance(instance_id)
    if instance is None:
        return not_found_response(
            "INSTANCE_NOT_FOUND",
            f"Workflow instance not found: {instance_id}",
        )
    return instance


@router.get(
    "/instances/{instance_id}/actions",
    response_model=list[Action],
    responses=ERROR_RESPONSES,
    summary="List available actions",
    description="Actions that may be executed from the instance's current state.",
)
async def available_actions(
    instance_id: str,
    service: WorkflowService = Depends(get_service),
):
    """List the actions an instance can execute right now."""
    outcome = await service.available_actions(instance_id)
    if not isinstance(outcome, Ok):
        return failure_response(outcome)
    return outcome.value


@router.post(
    "/instances/{instance_id}/execute",
    response_model=WorkflowInstance,
    responses=ERROR_RESPONSES,
    summary="Execute an action",
    description="Fire an action on an instance and return the updated instance.",
)
async def execute_action(
    instance_id: str,
    request: ExecuteActionRequest,
    service: WorkflowService = Depends(get_service),
):
    """Execute an action on a workflow instance."""
    outcome = await service.execute_action(instance_id, request.action_id)
    if not isinstance(outcome, Ok):
        return failure_response(outcome)
    return outcome.value


# ==================== Health Check Routes ====================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the workflow engine and its store.",
)
async def health_check(request: Request) -> HealthResponse:
    """Check health of the store backing the service."""
    services: dict[str, str] = {}

    service = getattr(request.app.state, "service", None)
    if service is None:
        services["store"] = "unhealthy"
    else:
        try:
            healthy = await service.store.health_check()
        except Exception:
            healthy = False
        services["store"] = "healthy" if healthy else "unhealthy"

    overall_status = "healthy" if services["store"] == "healthy" else "unhealthy"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        services=services,
    )
