"""Chat request and response schemas."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ChatTurn(BaseModel):
    """One prior turn replayed to the completion provider."""

    role: Literal["user", "model"]
    text: str


class ChatRequest(BaseModel):
    """Chat API request schema."""

    message: str = Field(..., max_length=20000)
    conversation_id: str | None = None
    system_instruction: str | None = Field(default=None, max_length=8000)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    thinking_budget: int = Field(
        default=0,
        ge=0,
        le=64000,
        description="Reasoning token budget; 0 disables extended reasoning",
    )

    @field_validator("message")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message must not be empty")
        return v


class ChatResponse(BaseModel):
    """Chat API response schema."""

    conversation_id: str
    text: str
