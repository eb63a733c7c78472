"""
FastAPI application factory.

Creates and configures the workflow engine API application. The application
is the composition root: it owns the store and the workflow service.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fsm_workflow import __version__
from fsm_workflow.api.routes import ErrorResponse, router
from fsm_workflow.config import Settings, get_settings
from fsm_workflow.orchestrator.locks import InstanceLockRegistry
from fsm_workflow.orchestrator.service import WorkflowService
from fsm_workflow.storage.base import WorkflowStore
from fsm_workflow.storage.factory import create_store

logger = logging.getLogger(__name__)


def build_service(store: WorkflowStore, settings: Settings) -> WorkflowService:
    """Wire a workflow service on top of a store."""
    return WorkflowService(
        store,
        locks=InstanceLockRegistry(),
        max_conflict_retries=settings.engine.max_conflict_retries,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Creates the configured store on startup unless one was injected, and
    closes it on shutdown.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("Starting FSM Workflow Engine...")

    owned_store: Optional[WorkflowStore] = None
    if app.state.service is None:
        owned_store = await create_store(settings)
        app.state.service = build_service(owned_store, settings)
        logger.info("Workflow service initialized")

    logger.info(
        f"Workflow Engine started - Environment: {settings.environment.value}"
    )

    yield

    # Shutdown
    logger.info("Shutting down FSM Workflow Engine...")

    if owned_store is not None:
        await owned_store.close()
        app.state.service = None

    logger.info("Workflow Engine shutdown complete")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer unexpected failures with 500 instead of dropping the connection."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    body = ErrorResponse(error="Internal server error", code="INTERNAL_ERROR")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(),
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[WorkflowStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        store: Pre-built store; when given, the lifespan does not create one
            and the service is available immediately
    """
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        description="Finite-state-machine workflow engine",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.state.settings = settings
    app.state.service = build_service(store, settings) if store is not None else None

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routers
    app.include_router(router)

    # Root endpoint
    @app.get("/", tags=["root"])
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running",
        }

    return app


# Application instance for uvicorn
app = create_app()
