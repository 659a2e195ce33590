"""Tests for application exceptions and their JSON rendering."""

import json

import pytest

from app.core.exceptions import (
    AccountLockedError,
    AdminChatForbiddenError,
    AppException,
    AuthorizationError,
    CompletionFailedError,
    CompletionUnavailableError,
    ConversationNotFoundError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    app_exception_handler,
)


class TestStatusCodes:
    """Each error maps to a fixed status and code."""

    @pytest.mark.parametrize(
        ("exc", "status", "code"),
        [
            (NotAuthenticatedError(), 401, "NOT_AUTHENTICATED"),
            (InvalidCredentialsError(), 401, "INVALID_CREDENTIALS"),
            (AuthorizationError(), 403, "AUTHORIZATION_ERROR"),
            (AdminChatForbiddenError(), 403, "ADMIN_CHAT_FORBIDDEN"),
            (ConversationNotFoundError(), 404, "CONVERSATION_NOT_FOUND"),
            (AccountLockedError(), 429, "ACCOUNT_LOCKED"),
            (CompletionFailedError(), 502, "COMPLETION_FAILED"),
            (CompletionUnavailableError(), 503, "COMPLETION_UNAVAILABLE"),
        ],
    )
    def test_mapping(self, exc: AppException, status: int, code: str) -> None:
        assert exc.status_code == status
        assert exc.code == code


class TestHandler:
    """The central handler renders the error envelope."""

    async def test_envelope(self) -> None:
        response = await app_exception_handler(None, ConversationNotFoundError())  # type: ignore[arg-type]
        assert response.status_code == 404
        assert json.loads(response.body) == {
            "status": 404,
            "message": "Conversation not found",
            "code": "CONVERSATION_NOT_FOUND",
        }
