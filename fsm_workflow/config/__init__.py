"""Configuration management."""

from fsm_workflow.config.settings import Environment, Settings, StorageBackend, get_settings

__all__ = ["Environment", "Settings", "StorageBackend", "get_settings"]
