"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import fakeredis.aioredis
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access_policy import AccessPolicy
from app.core.config import Settings
from app.core.database import Database
from app.core.rate_limit import limiter
from app.core.security import SessionCodec
from app.repositories.conversation_repo import ConversationRepository
from app.services.completion_gateway import CompletionGateway

TEST_SECRET = "test-session-secret"
SHARED_PASSWORD = "boldJam3"
ADMIN = "admin"


# --- Settings ---


def make_settings(tmp_path: Path, **overrides: object) -> Settings:
    """Settings isolated from the environment and backed by a temp database."""
    values: dict[str, object] = {
        "_env_file": None,
        "app_env": "development",
        "llm_provider": "openai",
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'chat.sqlite'}",
        "session_secret": SecretStr(TEST_SECRET),
        "shared_password": SecretStr(SHARED_PASSWORD),
        "allowed_users": "test1,test2,test3,admin",
        "admin_username": ADMIN,
        "openai_api_key": SecretStr("test-openai-key"),
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def codec(settings: Settings) -> SessionCodec:
    return SessionCodec(settings.auth)


@pytest.fixture
def policy() -> AccessPolicy:
    return AccessPolicy(ADMIN)


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Each test starts with a fresh login rate-limit window."""
    limiter.reset()


# --- Test DB (temporary SQLite file) ---


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """A migrated database that is disposed after the test."""
    db = Database(settings.database, settings.auth.admin_username)
    await db.ensure_ready()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def repo(db_session: AsyncSession) -> ConversationRepository:
    return ConversationRepository(db_session, admin_username=ADMIN)


# --- Test Redis (fakeredis) ---


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Create a fresh fake Redis client."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


# --- Mock LLM ---


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create a mock LLM for testing."""
    mock = MagicMock(spec=BaseChatModel)
    mock.ainvoke = AsyncMock(return_value=AIMessage(content="Test response"))
    return mock


@pytest.fixture
def model_factory(mock_llm: MagicMock) -> MagicMock:
    """Stands in for build_chat_model and records the arguments it got."""
    return MagicMock(return_value=mock_llm)


@pytest.fixture
def gateway(settings: Settings, model_factory: MagicMock) -> CompletionGateway:
    return CompletionGateway(settings.llm, model_factory=model_factory)


# --- App & client fixtures ---


def session_headers(settings: Settings, username: str) -> dict[str, str]:
    """Cookie header carrying a valid session for ``username``."""
    token = SessionCodec(settings.auth).issue(username)
    return {"Cookie": f"{settings.auth.cookie_name}={token}"}


@pytest.fixture
def app(
    settings: Settings,
    database: Database,
    fake_redis: fakeredis.aioredis.FakeRedis,
    gateway: CompletionGateway,
) -> FastAPI:
    """Application wired to the test database, fake Redis and mock LLM."""
    from app.main import create_app

    application = create_app(settings)
    application.state.database = database
    application.state.redis = fake_redis
    application.state.completion_gateway = gateway
    return application


def make_client(app: FastAPI, headers: dict[str, str] | None = None) -> AsyncClient:
    """Client talking to ``app`` in-process."""
    return AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", headers=headers
    )


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client."""
    async with make_client(app) as ac:
        yield ac


@pytest.fixture
async def user_client(
    app: FastAPI, settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as test1."""
    async with make_client(app, session_headers(settings, "test1")) as ac:
        yield ac


@pytest.fixture
async def other_client(
    app: FastAPI, settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as test2."""
    async with make_client(app, session_headers(settings, "test2")) as ac:
        yield ac


@pytest.fixture
async def admin_client(
    app: FastAPI, settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as the administrator."""
    async with make_client(app, session_headers(settings, ADMIN)) as ac:
        yield ac
