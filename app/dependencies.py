"""Global dependencies for the application."""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access_policy import AccessPolicy
from app.core.config import Settings
from app.core.database import get_async_session
from app.core.exceptions import NotAuthenticatedError
from app.core.redis import get_redis
from app.core.security import SessionCodec
from app.repositories.conversation_repo import ConversationRepository
from app.services.analytics_service import AnalyticsService
from app.services.auth_service import AuthService
from app.services.chat_service import ChatService
from app.services.completion_gateway import CompletionGateway
from app.services.conversation_service import ConversationService
from app.services.login_attempt_service import LoginAttemptService

# --- Application-scoped objects (built once in create_app) ---


def get_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def get_access_policy(request: Request) -> AccessPolicy:
    return request.app.state.access_policy


def get_session_codec(request: Request) -> SessionCodec:
    return request.app.state.session_codec


def get_completion_gateway(request: Request) -> CompletionGateway:
    """Completion gateway shared by every request."""
    return request.app.state.completion_gateway


SettingsDep = Annotated[Settings, Depends(get_settings)]
PolicyDep = Annotated[AccessPolicy, Depends(get_access_policy)]
SessionDep = Annotated[AsyncSession, Depends(get_async_session)]
GatewayDep = Annotated[CompletionGateway, Depends(get_completion_gateway)]


# --- Auth dependencies ---


class CurrentUser(BaseModel):
    """Authenticated user extracted from request state."""

    model_config = ConfigDict(frozen=True)

    username: str
    is_admin: bool


def get_optional_user(request: Request, policy: PolicyDep) -> CurrentUser | None:
    """The session identity set by the access gate, if any."""
    username = getattr(request.state, "username", None)
    if not username:
        return None
    return CurrentUser(username=username, is_admin=policy.is_admin(username))


def get_current_user(
    user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> CurrentUser:
    """Require an authenticated session."""
    if user is None:
        raise NotAuthenticatedError
    return user


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
OptionalUserDep = Annotated[CurrentUser | None, Depends(get_optional_user)]


def get_login_attempt_service(
    settings: SettingsDep,
    redis_client: Annotated[redis.Redis, Depends(get_redis)],  # type: ignore[type-arg]
) -> LoginAttemptService:
    """Get LoginAttemptService backed by the application's Redis client."""
    return LoginAttemptService(
        redis_client,
        max_attempts=settings.auth.max_login_attempts,
        lockout_seconds=settings.auth.login_lockout_seconds,
        key_prefix=settings.redis.key_prefix,
    )


def get_auth_service(
    settings: SettingsDep,
    codec: Annotated[SessionCodec, Depends(get_session_codec)],
    attempts: Annotated[LoginAttemptService, Depends(get_login_attempt_service)],
) -> AuthService:
    """Get AuthService with all dependencies."""
    return AuthService(config=settings.auth, codec=codec, attempts=attempts)


# --- Conversation dependencies ---


def get_conversation_repository(
    session: SessionDep,
    settings: SettingsDep,
) -> ConversationRepository:
    """Get ConversationRepository bound to the current session."""
    return ConversationRepository(session, admin_username=settings.auth.admin_username)


RepositoryDep = Annotated[ConversationRepository, Depends(get_conversation_repository)]


def get_conversation_service(
    repo: RepositoryDep,
    current_user: CurrentUserDep,
    policy: PolicyDep,
) -> ConversationService:
    """Get ConversationService for the authenticated user."""
    return ConversationService(repo=repo, username=current_user.username, policy=policy)


def get_chat_service(
    repo: RepositoryDep,
    session: SessionDep,
    gateway: GatewayDep,
    current_user: CurrentUserDep,
    policy: PolicyDep,
) -> ChatService:
    """Get ChatService for the authenticated user."""
    return ChatService(
        repo=repo,
        session=session,
        gateway=gateway,
        policy=policy,
        username=current_user.username,
    )


def get_analytics_service(repo: RepositoryDep, gateway: GatewayDep) -> AnalyticsService:
    """Get AnalyticsService over the current session."""
    return AnalyticsService(repo=repo, gateway=gateway)
