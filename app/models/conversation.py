"""Conversation database model."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.utils.datetime_utils import now_utc

DEFAULT_TITLE = "新对话"


class Conversation(Base):
    """A chat thread owned by exactly one user."""

    __tablename__ = "conversations"
    __table_args__ = (
        Index("idx_conversations_owner_created", "owner", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_TITLE)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    # Nullable only for stores that predate ownership; see migration 0002.
    owner: Mapped[str | None] = mapped_column(String(64), nullable=True)
