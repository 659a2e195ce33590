"""Service layer for owner-scoped conversation access."""

import structlog

from app.core.access_policy import AccessPolicy
from app.core.exceptions import AuthorizationError, ConversationNotFoundError
from app.models import Conversation
from app.repositories.conversation_repo import ConversationRepository
from app.schemas.conversation_schema import (
    ConversationListResponse,
    ConversationMessage,
    ConversationMessagesResponse,
    ConversationResponse,
    MemoEnvelope,
    MemoResponse,
)

logger = structlog.get_logger()


class ConversationService:
    """Conversation reads and edits on behalf of one authenticated user."""

    def __init__(
        self,
        repo: ConversationRepository,
        username: str,
        policy: AccessPolicy,
    ) -> None:
        self._repo = repo
        self._username = username
        self._policy = policy

    async def get_accessible(self, conversation_id: str) -> Conversation:
        """Load a conversation the current user may read or change.

        Raises 404 when it does not exist and 403 when it belongs to someone else.
        """
        conversation = await self._repo.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError
        if not self._policy.can_access_conversation(
            self._username, conversation.owner
        ):
            logger.warning(
                "Conversation access denied",
                username=self._username,
                conversation_id=conversation_id,
            )
            raise AuthorizationError(message="Not authorized to access this conversation")
        return conversation

    async def list_conversations(self) -> ConversationListResponse:
        """Return the user's conversations; the administrator sees all."""
        rows = await self._repo.list_conversations(owner=self._username)
        return ConversationListResponse(
            conversations=[ConversationResponse.model_validate(c) for c in rows]
        )

    async def create_conversation(self, title: str | None = None) -> ConversationResponse:
        """Start an empty conversation owned by the current user."""
        conversation = await self._repo.create_conversation(
            title=title.strip() if title else None,
            owner=self._username,
        )
        logger.info(
            "Conversation created",
            username=self._username,
            conversation_id=conversation.id,
        )
        return ConversationResponse.model_validate(conversation)

    async def get_messages(self, conversation_id: str) -> ConversationMessagesResponse:
        """Retrieve all messages for an accessible conversation."""
        await self.get_accessible(conversation_id)
        messages = await self._repo.list_messages(conversation_id)
        return ConversationMessagesResponse(
            conversation_id=conversation_id,
            messages=[ConversationMessage.model_validate(m) for m in messages],
        )

    async def update_title(self, conversation_id: str, title: str) -> None:
        """Rename an accessible conversation."""
        await self.get_accessible(conversation_id)
        await self._repo.update_conversation_title(conversation_id, title.strip())

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete an accessible conversation with its messages and memo."""
        await self.get_accessible(conversation_id)
        await self._repo.delete_conversation(conversation_id)
        logger.info(
            "Conversation deleted",
            username=self._username,
            conversation_id=conversation_id,
        )

    async def get_memo(self, conversation_id: str) -> MemoEnvelope:
        """Return the cached memo, or an empty envelope when none exists."""
        await self.get_accessible(conversation_id)
        memo = await self._repo.get_memo(conversation_id)
        if memo is None:
            return MemoEnvelope(memo=None)
        return MemoEnvelope(memo=MemoResponse.model_validate(memo))
