"""Conversation, message, and memo API schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.response_schema import UTCDatetime


class ConversationResponse(BaseModel):
    """Single conversation entry."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    title: str
    created_at: UTCDatetime
    owner: str | None = None


class CreateConversationRequest(BaseModel):
    """Request to start a conversation."""

    title: str | None = Field(default=None, max_length=200)


class UpdateTitleRequest(BaseModel):
    """Request to update conversation title."""

    title: str = Field(..., min_length=1, max_length=200)


class ConversationMessage(BaseModel):
    """Single message within a conversation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    conversation_id: str
    role: str
    content: str
    created_at: UTCDatetime


class ConversationListResponse(BaseModel):
    """Conversations visible to the caller, newest first."""

    model_config = ConfigDict(frozen=True)

    conversations: list[ConversationResponse]


class ConversationMessagesResponse(BaseModel):
    """All messages for a conversation."""

    model_config = ConfigDict(frozen=True)

    conversation_id: str
    messages: list[ConversationMessage]


class MemoResponse(BaseModel):
    """Cached summary of one conversation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    conversation_id: str
    content: str
    created_at: UTCDatetime
    updated_at: UTCDatetime


class MemoEnvelope(BaseModel):
    """Memo lookup result; ``memo`` is null when none was generated yet."""

    model_config = ConfigDict(frozen=True)

    memo: MemoResponse | None = None


class MemoRequest(BaseModel):
    """Memo generation request."""

    regen: bool = Field(default=False, description="Regenerate even if cached")
