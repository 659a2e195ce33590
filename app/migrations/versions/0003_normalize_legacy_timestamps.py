"""rewrite legacy ISO-8601 timestamps into the storage format

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-18

Older rows were written as ``2026-01-01T10:00:00.000Z``. Range filters compare
timestamps as text, so they are rewritten to ``2026-01-01 10:00:00.000000``.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0003"
down_revision: str | Sequence[str] | None = "0002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

TIMESTAMP_COLUMNS: dict[str, tuple[str, ...]] = {
    "conversations": ("created_at",),
    "messages": ("created_at",),
    "memos": ("created_at", "updated_at"),
}


def upgrade() -> None:
    """Normalize ``T``/``Z`` timestamps in place."""
    for table, columns in TIMESTAMP_COLUMNS.items():
        for column in columns:
            op.execute(
                sa.text(
                    f"UPDATE {table} "
                    f"SET {column} = substr({column}, 1, 10) || ' ' "
                    f"|| substr({column}, 12, 12) || '000' "
                    f"WHERE {column} LIKE '____-__-__T__:__:__.___Z'"
                )
            )


def downgrade() -> None:
    """Nothing to undo; the rewritten values are equivalent."""
