"""FastAPI application and routes."""

from fsm_workflow.api.app import create_app
from fsm_workflow.api.routes import router

__all__ = ["create_app", "router"]
