"""add order event outbox table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'outbox_messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('routing_key', sa.String(length=100), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_outbox_published_created', 'outbox_messages', ['published_at', 'created_at'])
    op.create_index(op.f('ix_outbox_messages_order_id'), 'outbox_messages', ['order_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_outbox_messages_order_id'), table_name='outbox_messages')
    op.drop_index('idx_outbox_published_created', table_name='outbox_messages')
    op.drop_table('outbox_messages')
