"""Apply pending schema migrations to the conversation store.

Usage:
    python -m scripts.migrate_db
    python -m scripts.migrate_db --url sqlite+aiosqlite:///./data/chat.sqlite
"""

import argparse
import asyncio

from app.core.config import get_settings
from app.core.database import Database
from app.core.settings import DatabaseConfig


async def migrate(url: str, admin_username: str) -> None:
    """Upgrade the database at ``url`` to the latest revision."""
    database = Database(DatabaseConfig(url=url), admin_username)
    try:
        await database.ensure_ready()
    finally:
        await database.dispose()
    print(f"Database at {url} is up to date.")


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Migrate the conversation store")
    parser.add_argument("--url", default=settings.database.url, help="Database URL")
    parser.add_argument(
        "--admin",
        default=settings.auth.admin_username,
        help="Owner assigned to legacy conversations",
    )
    args = parser.parse_args()

    asyncio.run(migrate(args.url, args.admin))


if __name__ == "__main__":
    main()
