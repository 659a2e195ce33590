"""create conversations, messages and memos tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Stores created before migrations were versioned already hold these tables,
so each one is only created when missing.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the base tables that do not exist yet."""
    existing = set(sa.inspect(op.get_bind()).get_table_names())

    if "conversations" not in existing:
        op.create_table(
            "conversations",
            sa.Column("id", sa.String(36), nullable=False),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    if "messages" not in existing:
        op.create_table(
            "messages",
            sa.Column("id", sa.String(36), nullable=False),
            sa.Column("conversation_id", sa.String(36), nullable=False),
            sa.Column("role", sa.String(16), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(
                ["conversation_id"], ["conversations.id"], ondelete="CASCADE"
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "idx_messages_conversation",
            "messages",
            ["conversation_id", "created_at"],
            unique=False,
        )
        op.create_index(
            "idx_messages_created",
            "messages",
            ["created_at"],
            unique=False,
        )

    if "memos" not in existing:
        op.create_table(
            "memos",
            sa.Column("conversation_id", sa.String(36), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(
                ["conversation_id"], ["conversations.id"], ondelete="CASCADE"
            ),
            sa.PrimaryKeyConstraint("conversation_id"),
        )


def downgrade() -> None:
    """Drop memos, messages and conversations."""
    op.drop_table("memos")
    op.drop_index("idx_messages_created", table_name="messages")
    op.drop_index("idx_messages_conversation", table_name="messages")
    op.drop_table("messages")
    op.drop_table("conversations")
