"""Programmatic Alembic upgrades on a shared connection."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import Connection

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def build_alembic_config(admin_username: str = "admin") -> Config:
    """Alembic config pointing at the packaged migration scripts."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.attributes["admin_username"] = admin_username
    return config


def run_migrations(connection: Connection, admin_username: str) -> None:
    """Upgrade the database behind ``connection`` to the latest revision.

    Meant for ``AsyncConnection.run_sync``; the caller owns the transaction.
    """
    config = build_alembic_config(admin_username)
    config.attributes["connection"] = connection
    command.upgrade(config, "head")
