"""Async database engine, session factory, and lazy schema readiness."""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import structlog
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.settings import DatabaseConfig

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


SQLITE_BUSY_TIMEOUT_MS = 30_000


def _enable_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    # Wait on locks held by other processes instead of failing at once.
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and hands out sessions once the schema is migrated.

    ``ensure_ready`` is idempotent and cheap after the first call, so request
    dependencies call it on every request (migrate-on-first-use).
    """

    def __init__(self, config: DatabaseConfig, admin_username: str) -> None:
        self._config = config
        self._admin_username = admin_username
        self._ready = False
        self._lock = asyncio.Lock()
        self.engine: AsyncEngine = create_async_engine(config.url, echo=config.echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_pragmas)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ensure_ready(self) -> None:
        """Create the data directory and apply pending migrations once."""
        if self._ready:
            return
        async with self._lock:
            if self._ready:
                return
            from app.core.migrations import run_migrations

            sqlite_path = self._config.sqlite_path
            if sqlite_path:
                Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)

            async with self.engine.connect() as conn:
                if self.engine.dialect.name == "sqlite":
                    # Take the write lock before Alembic reads the current
                    # revision, so concurrent workers migrate one at a time
                    # and the later ones find the store already at head.
                    await conn.exec_driver_sql("BEGIN IMMEDIATE")
                await conn.run_sync(run_migrations, self._admin_username)
                await conn.commit()
            self._ready = True
            logger.info("Database ready", url=self.engine.url.render_as_string())

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session that commits on success and rolls back on error."""
    database: Database = request.app.state.database
    await database.ensure_ready()
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
