"""LLM provider configuration."""

from typing import Literal

from pydantic import BaseModel, SecretStr


class LLMConfig(BaseModel, frozen=True):
    """LLM provider settings."""

    provider: Literal["openai", "anthropic"]
    openai_api_key: SecretStr
    openai_api_base: str | None = None
    openai_chat_model: str
    openai_text_model: str
    anthropic_api_key: SecretStr
    anthropic_chat_model: str
    anthropic_text_model: str
    default_temperature: float = 0.3
    chat_timeout_seconds: float = 300
    summary_timeout_seconds: float = 110

    @property
    def api_key(self) -> SecretStr:
        """API key of the active provider."""
        if self.provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    @property
    def chat_model(self) -> str:
        """Conversational model of the active provider."""
        if self.provider == "anthropic":
            return self.anthropic_chat_model
        return self.openai_chat_model

    @property
    def text_model(self) -> str:
        """Single-shot model of the active provider."""
        if self.provider == "anthropic":
            return self.anthropic_text_model
        return self.openai_text_model
