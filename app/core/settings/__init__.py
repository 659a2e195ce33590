"""Domain-specific configuration models."""

from app.core.settings.app_config import AppConfig
from app.core.settings.auth_config import AuthConfig
from app.core.settings.database_config import DatabaseConfig
from app.core.settings.llm_config import LLMConfig
from app.core.settings.redis_config import RedisConfig

__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "LLMConfig",
    "RedisConfig",
]
