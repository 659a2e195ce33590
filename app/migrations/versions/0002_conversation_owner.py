"""add owner column to conversations

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

Existing conversations are assigned to the administrator so they never leak
to ordinary users.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import context, op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: str | Sequence[str] | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add and backfill conversations.owner."""
    admin_username = context.config.attributes.get("admin_username", "admin")
    bind = op.get_bind()
    columns = {c["name"] for c in sa.inspect(bind).get_columns("conversations")}

    # Pre-versioned stores may already carry the column.
    if "owner" not in columns:
        op.add_column(
            "conversations",
            sa.Column("owner", sa.String(64), nullable=True),
        )

    op.execute(
        sa.text("UPDATE conversations SET owner = :admin WHERE owner IS NULL").bindparams(
            admin=admin_username
        )
    )
    op.create_index(
        "idx_conversations_owner_created",
        "conversations",
        ["owner", "created_at"],
        unique=False,
        if_not_exists=True,
    )


def downgrade() -> None:
    """Drop conversations.owner."""
    op.drop_index("idx_conversations_owner_created", table_name="conversations")
    with op.batch_alter_table("conversations") as batch_op:
        batch_op.drop_column("owner")
