"""
PostgreSQL-backed workflow store.

Each operation runs in its own session/transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, text, update
from sqlalchemy.dialects.postgresql import insert

from fsm_workflow.config.settings import PostgresSettings
from fsm_workflow.core.models import WorkflowDefinition, WorkflowInstance
from fsm_workflow.storage.base import WorkflowStore
from fsm_workflow.storage.postgres.database import Database
from fsm_workflow.storage.postgres.models import (
    WorkflowDefinitionModel,
    WorkflowInstanceModel,
)

logger = logging.getLogger(__name__)


class PostgresWorkflowStore(WorkflowStore):
    """
    Durable store on PostgreSQL.

    Schema is managed by the Alembic revision under ``alembic/versions``.
    """

    def __init__(self, database: Database):
        self.database = database

    @classmethod
    async def connect(cls, settings: PostgresSettings) -> "PostgresWorkflowStore":
        """Initialize a connection pool and build a store that owns it."""
        database = Database(settings)
        await database.init()
        return cls(database)

    # ==================== Workflow Definitions ====================

    async def save_definition(self, definition: WorkflowDefinition) -> None:
        async with self.database.session() as session:
            session.add(
                WorkflowDefinitionModel(
                    id=definition.id,
                    name=definition.name,
                    description=definition.description,
                    document=definition.to_document(),
                    created_at=definition.created_at,
                )
            )

    async def get_definition(self, definition_id: str) -> Optional[WorkflowDefinition]:
        async with self.database.session() as session:
            model = await session.get(WorkflowDefinitionModel, definition_id)
            if model is None:
                return None
            return WorkflowDefinition.model_validate(model.document)

    async def list_definitions(self) -> list[WorkflowDefinition]:
        async with self.database.session() as session:
            result = await session.execute(
                select(WorkflowDefinitionModel).order_by(WorkflowDefinitionModel.created_at)
            )
            return [
                WorkflowDefinition.model_validate(model.document)
                for model in result.scalars().all()
            ]

    # ==================== Workflow Instances ====================

    async def save_instance(self, instance: WorkflowInstance) -> None:
        values = self._instance_values(instance)
        statement = insert(WorkflowInstanceModel).values(id=instance.id, **values)
        statement = statement.on_conflict_do_update(
            index_elements=[WorkflowInstanceModel.id],
            set_=values,
        )
        async with self.database.session() as session:
            await session.execute(statement)

    async def get_instance(self, instance_id: str) -> Optional[WorkflowInstance]:
        async with self.database.session() as session:
            model = await session.get(WorkflowInstanceModel, instance_id)
            if model is None:
                return None
            return WorkflowInstance.model_validate(model.document)

    async def list_instances(self) -> list[WorkflowInstance]:
        async with self.database.session() as session:
            result = await session.execute(
                select(WorkflowInstanceModel).order_by(WorkflowInstanceModel.created_at)
            )
            return [
                WorkflowInstance.model_validate(model.document)
                for model in result.scalars().all()
            ]

    async def replace_instance(
        self,
        instance: WorkflowInstance,
        expected_last_updated: datetime,
    ) -> bool:
        async with self.database.session() as session:
            result = await session.execute(
                update(WorkflowInstanceModel)
                .where(
                    WorkflowInstanceModel.id == instance.id,
                    WorkflowInstanceModel.last_updated == expected_last_updated,
                )
                .values(**self._instance_values(instance))
            )
            return result.rowcount == 1

    @staticmethod
    def _instance_values(instance: WorkflowInstance) -> dict:
        return {
            "definition_id": instance.definition_id,
            "current_state_id": instance.current_state_id,
            "document": instance.to_document(),
            "created_at": instance.created_at,
            "last_updated": instance.last_updated,
            "completed_at": instance.completed_at,
        }

    async def health_check(self) -> bool:
        try:
            async with self.database.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"PostgreSQL health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.database.close()
