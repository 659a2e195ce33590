"""Alembic migration environment.

Runs either on a connection handed over through ``config.attributes`` (the
application's lazy upgrade) or on a fresh async engine (``alembic upgrade``).
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

import app.models  # noqa: F401
from app.core.config import get_settings
from app.core.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Create an engine from settings and migrate through it."""
    settings = get_settings()
    config.attributes.setdefault("admin_username", settings.admin_username)
    url = config.get_main_option("sqlalchemy.url") or settings.database.url
    engine = create_async_engine(url)
    async with engine.connect() as connection:
        if engine.dialect.name == "sqlite":
            await connection.exec_driver_sql("BEGIN IMMEDIATE")
        await connection.run_sync(do_run_migrations)
        await connection.commit()
    await engine.dispose()


if context.is_offline_mode():
    raise RuntimeError("Offline migrations are not supported; they inspect the live schema")

shared_connection = config.attributes.get("connection")
if shared_connection is None:
    asyncio.run(run_async_migrations())
else:
    do_run_migrations(shared_connection)
