"""Initial database schema

Revision ID: 20261018_000001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create fsm_workflow_definitions table
    op.create_table(
        'fsm_workflow_definitions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('document', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_fsm_workflow_definitions_name', 'fsm_workflow_definitions', ['name'])

    # Create fsm_workflow_instances table
    op.create_table(
        'fsm_workflow_instances',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('definition_id', sa.String(64), nullable=False),
        sa.Column('current_state_id', sa.String(255), nullable=False),
        sa.Column('document', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['definition_id'], ['fsm_workflow_definitions.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_fsm_workflow_instances_definition_id', 'fsm_workflow_instances', ['definition_id'])


def downgrade() -> None:
    op.drop_table('fsm_workflow_instances')
    op.drop_table('fsm_workflow_definitions')
