"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.common.auth_router import router as auth_router
from app.api.common.page_router import router as page_router
from app.api.v1.chat_router import router as chat_router
from app.api.v1.conversation_router import router as conversation_router
from app.api.v1.metrics_router import router as metrics_router
from app.core.access_policy import AccessPolicy
from app.core.config import Settings, get_settings
from app.core.database import Database
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from app.core.middleware import AccessGateMiddleware
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.core.redis import close_redis, init_redis
from app.core.security import SessionCodec
from app.schemas.response_schema import ApiResponse, success_response
from app.services.completion_gateway import CompletionGateway

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        llm_provider=settings.llm.provider,
    )
    app.state.redis = await init_redis(settings.redis)
    await app.state.database.ensure_ready()
    yield
    await close_redis(app.state.redis)
    await app.state.database.dispose()
    logger.info("Shutting down application")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its database, gateway, and middleware."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.name,
        description="多用户 LLM 对话服务：会话鉴权、会话历史与使用分析",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app.debug,
    )

    codec = SessionCodec(settings.auth)
    policy = AccessPolicy(settings.auth.admin_username)

    app.state.settings = settings
    app.state.session_codec = codec
    app.state.access_policy = policy
    app.state.database = Database(settings.database, settings.auth.admin_username)
    app.state.completion_gateway = CompletionGateway(settings.llm)
    app.state.limiter = limiter

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

    # Middleware (registration order: inner→outer, execution order: outer→inner)
    app.add_middleware(
        AccessGateMiddleware,
        codec=codec,
        policy=policy,
        cookie_name=settings.auth.cookie_name,
    )
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.app.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=ApiResponse[dict])
    async def health_check() -> dict:
        """Health check endpoint."""
        return success_response(
            {"status": "healthy", "database": app.state.database.is_ready}
        )

    # Register routers
    app.include_router(auth_router)
    app.include_router(conversation_router)
    app.include_router(chat_router)
    app.include_router(metrics_router)
    app.include_router(page_router)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.app.host, port=settings.app.port)
