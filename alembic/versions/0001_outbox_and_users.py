"""outbox_and_users

Revision ID: 0001_outbox_and_users
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001_outbox_and_users'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create outbox_messages and users tables."""
    op.create_table(
        'outbox_messages',
        # Primary key (UUID v7 for time-ordering)
        sa.Column('id', sa.Uuid(), nullable=False),

        # Notification identification and snapshot
        sa.Column('event_type', sa.String(length=255), nullable=False),
        sa.Column(
            'event_payload',
            sa.Text().with_variant(postgresql.JSONB(), 'postgresql'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),

        # Processing state
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('next_attempt_at', sa.DateTime(timezone=True), nullable=True),

        sa.PrimaryKeyConstraint('id', name=op.f('pk_outbox_messages'))
    )

    op.create_index('ix_outbox_messages_created_at', 'outbox_messages', ['created_at'], unique=False)
    op.create_index('ix_outbox_messages_next_attempt_at', 'outbox_messages', ['next_attempt_at'], unique=False)

    # Pending rows in claim order
    op.create_index(
        'ix_outbox_messages_pending',
        'outbox_messages',
        ['processed_at', 'created_at'],
        unique=False
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_name', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('language', sa.String(length=8), nullable=False, server_default='pl'),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),

        # Timestamps
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),

        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('user_name', name=op.f('uq_users_user_name'))
    )


def downgrade() -> None:
    """Drop users and outbox_messages tables."""
    op.drop_table('users')

    op.drop_index('ix_outbox_messages_pending', table_name='outbox_messages')
    op.drop_index('ix_outbox_messages_next_attempt_at', table_name='outbox_messages')
    op.drop_index('ix_outbox_messages_created_at', table_name='outbox_messages')
    op.drop_table('outbox_messages')
