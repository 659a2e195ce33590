"""ORM models; importing this package registers every table on Base.metadata."""

from app.models.conversation import DEFAULT_TITLE, Conversation
from app.models.memo import Memo
from app.models.message import Message, Role

__all__ = ["DEFAULT_TITLE", "Conversation", "Memo", "Message", "Role"]
