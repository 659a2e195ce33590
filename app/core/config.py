"""Application configuration using Pydantic Settings V2."""

from functools import cached_property, lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.settings import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    LLMConfig,
    RedisConfig,
)

# Only ever used outside production; see Settings._check_session_secret.
DEV_SESSION_SECRET = "eldaline-dev-session-secret"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.llm.provider).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="LLM provider to use",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    openai_api_base: str | None = Field(
        default=None,
        description="Override for the OpenAI-compatible API base URL",
    )
    openai_chat_model: str = Field(
        default="gpt-5-chat-latest",
        description="OpenAI model for conversational turns",
    )
    openai_text_model: str = Field(
        default="gpt-5-chat-latest",
        description="OpenAI model for memos and summaries",
    )

    # Anthropic
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    anthropic_chat_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model for conversational turns",
    )
    anthropic_text_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model for memos and summaries",
    )

    # Completion behaviour
    default_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature when the caller does not set one",
    )
    chat_timeout_seconds: float = Field(
        default=300,
        gt=0,
        description="Upper bound for a single chat completion",
    )
    summary_timeout_seconds: float = Field(
        default=110,
        gt=0,
        description="Upper bound for memo and summary generation",
    )

    # App
    app_name: str = Field(
        default="eldaline-chat",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8004,
        ge=1,
        le=65535,
        description="Server port",
    )

    # Session Auth
    session_secret: SecretStr | None = Field(
        default=None,
        description="HMAC secret used to sign session cookies",
    )
    session_cookie_name: str = Field(
        default="eldaline_session",
        description="Name of the session cookie",
    )
    session_max_age_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Session cookie lifetime in days",
    )
    allowed_users: str = Field(
        default="test1,test2,test3,admin",
        description="Comma-separated list of usernames allowed to log in",
    )
    admin_username: str = Field(
        default="admin",
        description="Username with global read access and analytics",
    )
    shared_password: SecretStr = Field(
        default=SecretStr("boldJam3"),
        description="Single shared password for every allowed user",
    )
    login_rate_limit: str = Field(
        default="5/minute",
        description="Login endpoint rate limit",
    )
    max_login_attempts: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Failed logins before a username is locked",
    )
    login_lockout_seconds: int = Field(
        default=300,
        ge=1,
        description="How long a locked username stays locked",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/chat.sqlite",
        description="Async database URL",
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    @model_validator(mode="after")
    def _check_users(self) -> "Settings":
        users = self.allowed_users_list
        if not users:
            raise ValueError("ALLOWED_USERS must name at least one user")
        if any("." in user for user in users):
            raise ValueError("Usernames may not contain '.'")
        if self.admin_username not in users:
            raise ValueError("ADMIN_USERNAME must be one of ALLOWED_USERS")
        return self

    @model_validator(mode="after")
    def _check_session_secret(self) -> "Settings":
        secret = self.session_secret.get_secret_value() if self.session_secret else ""
        if not secret and self.app_env == "production":
            raise ValueError("SESSION_SECRET is required in production")
        return self

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM provider configuration."""
        return LLMConfig(
            provider=self.llm_provider,
            openai_api_key=self.openai_api_key,
            openai_api_base=self.openai_api_base,
            openai_chat_model=self.openai_chat_model,
            openai_text_model=self.openai_text_model,
            anthropic_api_key=self.anthropic_api_key,
            anthropic_chat_model=self.anthropic_chat_model,
            anthropic_text_model=self.anthropic_text_model,
            default_temperature=self.default_temperature,
            chat_timeout_seconds=self.chat_timeout_seconds,
            summary_timeout_seconds=self.summary_timeout_seconds,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
            host=self.host,
            port=self.port,
        )

    @cached_property
    def auth(self) -> AuthConfig:
        """Session authentication configuration."""
        secret = self.session_secret
        if secret is None or not secret.get_secret_value():
            secret = SecretStr(DEV_SESSION_SECRET)
        return AuthConfig(
            secret_key=secret,
            cookie_name=self.session_cookie_name,
            max_age_days=self.session_max_age_days,
            allowed_users=tuple(self.allowed_users_list),
            admin_username=self.admin_username,
            shared_password=self.shared_password,
            login_rate_limit=self.login_rate_limit,
            max_login_attempts=self.max_login_attempts,
            login_lockout_seconds=self.login_lockout_seconds,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url, echo=self.database_echo)

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(url=self.redis_url)

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def allowed_users_list(self) -> list[str]:
        """Get allowed usernames as a list."""
        return [u.strip() for u in self.allowed_users.split(",") if u.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide settings once."""
    return Settings()
