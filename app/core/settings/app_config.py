"""Application environment configuration."""

from typing import Literal

from pydantic import BaseModel


class AppConfig(BaseModel, frozen=True):
    """Application environment and server settings."""

    name: str
    env: Literal["development", "staging", "production"]
    debug: bool
    host: str = "0.0.0.0"
    port: int = 8004

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == "production"
