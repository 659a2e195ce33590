"""Conversation repository: conversations, messages, and memos."""

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, delete, literal_column, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import DEFAULT_TITLE, Conversation, Memo, Message, Role
from app.utils.content import normalize_message_content
from app.utils.datetime_utils import ensure_utc, now_utc

# Insertion order; breaks ties between rows written in the same instant.
MESSAGE_ROWID = literal_column("messages.rowid")
CONVERSATION_ROWID = literal_column("conversations.rowid")


@dataclass(frozen=True)
class MessageRecord:
    """Immutable message as read back from the store, content normalized."""

    id: str
    conversation_id: str
    role: str
    content: str
    created_at: datetime


class ConversationRepository:
    """Encapsulates conversation, message, and memo queries.

    ``admin_username`` is the owner given to conversations created without one
    and the identity whose listings are not owner-filtered.
    """

    def __init__(self, session: AsyncSession, admin_username: str) -> None:
        self._session = session
        self._admin = admin_username

    # --- Conversations ---

    async def create_conversation(
        self,
        title: str | None = None,
        owner: str | None = None,
    ) -> Conversation:
        """Insert a conversation with a fresh id."""
        conversation = Conversation(
            id=str(uuid.uuid4()),
            title=title or DEFAULT_TITLE,
            created_at=now_utc(),
            owner=owner or self._admin,
        )
        self._session.add(conversation)
        await self._session.flush()
        return conversation

    async def list_conversations(self, owner: str | None = None) -> list[Conversation]:
        """Newest first; the administrator and ``None`` see every conversation."""
        stmt = select(Conversation)
        if owner and owner != self._admin:
            stmt = stmt.where(Conversation.owner == owner)
        stmt = stmt.order_by(Conversation.created_at.desc(), CONVERSATION_ROWID.desc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Find a conversation by id."""
        result = await self._session.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def get_conversations_by_ids(
        self, conversation_ids: Iterable[str]
    ) -> dict[str, Conversation]:
        """Map ids to conversations; unknown ids are left out."""
        ids = list(set(conversation_ids))
        if not ids:
            return {}
        result = await self._session.execute(
            select(Conversation).where(Conversation.id.in_(ids))
        )
        return {c.id: c for c in result.scalars().all()}

    async def update_conversation_title(self, conversation_id: str, title: str) -> None:
        """Replace the title of a conversation."""
        await self._session.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(title=title)
        )

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation with its memo and messages.

        All three statements run in the session's transaction; the caller's
        commit makes them visible together and a failure rolls all of them back.
        """
        await self._session.execute(
            delete(Memo).where(Memo.conversation_id == conversation_id)
        )
        await self._session.execute(
            delete(Message).where(Message.conversation_id == conversation_id)
        )
        result = await self._session.execute(
            delete(Conversation).where(Conversation.id == conversation_id)
        )
        return bool(result.rowcount)

    # --- Messages ---

    async def add_message(
        self,
        conversation_id: str,
        role: Role,
        content: str,
    ) -> MessageRecord:
        """Append a message. Callers must have verified the conversation."""
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role=role,
            content=content if isinstance(content, str) else str(content),
            created_at=now_utc(),
        )
        self._session.add(message)
        await self._session.flush()
        return self._to_record(
            message.id, conversation_id, role, message.content, message.created_at
        )

    async def list_messages(self, conversation_id: str) -> list[MessageRecord]:
        """All messages of a conversation in creation order."""
        return await self._select_messages(
            select(Message).where(Message.conversation_id == conversation_id)
        )

    async def list_messages_since(self, since: datetime) -> list[MessageRecord]:
        """Every message created at or after ``since``."""
        return await self._select_messages(
            select(Message).where(Message.created_at >= since)
        )

    async def list_messages_since_for_user(
        self,
        since: datetime,
        owner: str | None = None,
    ) -> list[MessageRecord]:
        """Messages since ``since`` in conversations owned by ``owner``.

        Falls back to the unrestricted scan for the administrator or no owner.
        """
        if not owner or owner == self._admin:
            return await self.list_messages_since(since)
        return await self._select_messages(
            select(Message)
            .join(Conversation, Conversation.id == Message.conversation_id)
            .where(Message.created_at >= since, Conversation.owner == owner)
        )

    async def _select_messages(
        self, stmt: Select[tuple[Message]]
    ) -> list[MessageRecord]:
        result = await self._session.execute(
            stmt.order_by(Message.created_at.asc(), MESSAGE_ROWID.asc())
        )
        return [
            self._to_record(m.id, m.conversation_id, m.role, m.content, m.created_at)
            for m in result.scalars().all()
        ]

    @staticmethod
    def _to_record(
        message_id: str,
        conversation_id: str,
        role: str,
        content: object,
        created_at: datetime,
    ) -> MessageRecord:
        return MessageRecord(
            id=message_id,
            conversation_id=conversation_id,
            role=role,
            content=normalize_message_content(content),
            created_at=ensure_utc(created_at),
        )

    # --- Memos ---

    async def get_memo(self, conversation_id: str) -> Memo | None:
        """Find the memo of a conversation."""
        result = await self._session.execute(
            select(Memo)
            .where(Memo.conversation_id == conversation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert_memo(self, conversation_id: str, content: str) -> Memo:
        """Insert or replace memo content, keeping the original created_at."""
        now = now_utc()
        stmt = sqlite_insert(Memo).values(
            conversation_id=conversation_id,
            content=content,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Memo.conversation_id],
            set_={
                "content": stmt.excluded.content,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)
        memo = await self.get_memo(conversation_id)
        if memo is None:
            raise RuntimeError(
                f"Memo for conversation {conversation_id} vanished after upsert"
            )
        return memo


def group_by_conversation(
    messages: Sequence[MessageRecord],
) -> dict[str, list[MessageRecord]]:
    """Group messages by conversation id, keeping first-seen order."""
    grouped: dict[str, list[MessageRecord]] = {}
    for message in messages:
        grouped.setdefault(message.conversation_id, []).append(message)
    return grouped
