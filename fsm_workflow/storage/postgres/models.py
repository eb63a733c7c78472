"""
SQLAlchemy models for PostgreSQL persistence.

Definitions and instances are stored as camelCase JSONB documents, with the
columns needed for lookup and compare-and-set kept alongside.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    type_annotation_map = {
        dict[str, Any]: JSONB,
    }


class WorkflowDefinitionModel(Base):
    """
    Stores workflow definitions.

    Rows are inserted once and never updated.
    """

    __tablename__ = "fsm_workflow_definitions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Full definition (states and actions) as JSON
    document: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<WorkflowDefinition(id={self.id}, name={self.name})>"


class WorkflowInstanceModel(Base):
    """Stores workflow instances and their history."""

    __tablename__ = "fsm_workflow_instances"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    definition_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("fsm_workflow_definitions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    current_state_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Full instance (including history) as JSON
    document: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    # Timestamps; last_updated doubles as the compare-and-set token
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<WorkflowInstance(id={self.id}, state={self.current_state_id})>"
