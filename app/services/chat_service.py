"""Chat flow: persist the user turn, ask the model, persist the reply."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access_policy import AccessPolicy
from app.core.exceptions import (
    AdminChatForbiddenError,
    AuthorizationError,
    CompletionFailedError,
    CompletionUnavailableError,
    MissingCredentialError,
    ProviderError,
)
from app.models import Conversation
from app.repositories.conversation_repo import ConversationRepository, MessageRecord
from app.schemas.chat_schema import ChatRequest, ChatResponse, ChatTurn
from app.services.completion_gateway import CompletionGateway
from app.services.title_service import derive_title, is_placeholder_title

logger = structlog.get_logger()

DEFAULT_SYSTEM_INSTRUCTION = (
    "你是一名中文助手。所有回答请使用简洁、现代的中文表达，短句直给，避免冗长。"
)


def to_turns(messages: list[MessageRecord]) -> list[ChatTurn]:
    """Replayable history; system rows are not part of the dialogue."""
    return [
        ChatTurn(role="model" if m.role == "model" else "user", text=m.content)
        for m in messages
        if m.role in ("user", "model")
    ]


class ChatService:
    """Runs one chat exchange for a non-administrator user."""

    def __init__(
        self,
        repo: ConversationRepository,
        session: AsyncSession,
        gateway: CompletionGateway,
        policy: AccessPolicy,
        username: str,
    ) -> None:
        self._repo = repo
        self._session = session
        self._gateway = gateway
        self._policy = policy
        self._username = username

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Handle one user message and return the model's reply."""
        if self._policy.is_admin(self._username):
            raise AdminChatForbiddenError

        conversation = await self._resolve_conversation(request.conversation_id)
        history = await self._repo.list_messages(conversation.id)

        await self._repo.add_message(conversation.id, "user", request.message)
        if not history or is_placeholder_title(conversation.title):
            await self._repo.update_conversation_title(
                conversation.id, derive_title(request.message)
            )
        # The user turn survives a failed completion.
        await self._session.commit()

        logger.info(
            "Chat started",
            username=self._username,
            conversation_id=conversation.id,
            history_turns=len(history),
            message_length=len(request.message),
        )

        try:
            reply = await self._gateway.converse(
                history=to_turns(history),
                new_message=request.message,
                system_instruction=request.system_instruction
                or DEFAULT_SYSTEM_INSTRUCTION,
                temperature=request.temperature,
                thinking_budget=request.thinking_budget,
            )
        except MissingCredentialError as exc:
            logger.warning(
                "Chat unavailable, no API key",
                conversation_id=conversation.id,
            )
            raise CompletionUnavailableError from exc
        except ProviderError as exc:
            logger.error(
                "Chat completion failed",
                conversation_id=conversation.id,
                error=str(exc),
            )
            raise CompletionFailedError from exc

        if reply.strip():
            await self._repo.add_message(conversation.id, "model", reply)

        logger.info(
            "Chat finished",
            conversation_id=conversation.id,
            reply_length=len(reply),
        )
        return ChatResponse(conversation_id=conversation.id, text=reply)

    async def _resolve_conversation(self, conversation_id: str | None) -> Conversation:
        if conversation_id:
            conversation = await self._repo.get_conversation(conversation_id)
            if conversation is not None:
                if not self._policy.can_access_conversation(
                    self._username, conversation.owner
                ):
                    raise AuthorizationError(
                        message="Not authorized to access this conversation"
                    )
                return conversation
        return await self._repo.create_conversation(owner=self._username)
