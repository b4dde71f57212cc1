"""Create users and ideas tables

Revision ID: 7d1f3a9c2b40
Revises:
Create Date: 2026-10-19 10:12:31.418207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7d1f3a9c2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supabase_auth_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_users_supabase_auth_id'), 'users', ['supabase_auth_id'], unique=True)

    op.create_table(
        'ideas',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('validated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('validation_status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('validation_error', sa.String(), nullable=True),
        sa.Column('market_demand', sa.Float(), nullable=True),
        sa.Column('competitor_analysis', sa.Text(), nullable=True),
        sa.Column('tech_stack_suggestion', sa.JSON(), nullable=True),
        sa.Column('feature_suggestions', sa.JSON(), nullable=True),
        sa.Column('mrr_projection_min', sa.Float(), nullable=True),
        sa.Column('mrr_projection_max', sa.Float(), nullable=True),
        sa.Column('effort_estimation_months', sa.Integer(), nullable=True),
        sa.Column('effort_estimation_team_size', sa.Integer(), nullable=True),
        sa.Column('ai_provider', sa.String(), nullable=True),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_ideas_owner_id'), 'ideas', ['owner_id'], unique=False)
    op.create_index(op.f('ix_ideas_validation_status'), 'ideas', ['validation_status'], unique=False)

    # No policies: the Supabase REST layer gets no rows, only this API does
    op.execute("ALTER TABLE ideas ENABLE ROW LEVEL SECURITY")


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_ideas_validation_status'), table_name='ideas')
    op.drop_index(op.f('ix_ideas_owner_id'), table_name='ideas')
    op.drop_table('ideas')
    op.drop_index(op.f('ix_users_supabase_auth_id'), table_name='users')
    op.drop_table('users')
