"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Authentication (401) ---


class AuthenticationError(AppException):
    """Base authentication error."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message=message, code="AUTHENTICATION_ERROR", status_code=401)


class NotAuthenticatedError(AppException):
    """No valid session cookie on the request."""

    def __init__(self) -> None:
        super().__init__(
            message="Not authenticated",
            code="NOT_AUTHENTICATED",
            status_code=401,
        )


class InvalidCredentialsError(AppException):
    """Unknown username or wrong password."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid username or password",
            code="INVALID_CREDENTIALS",
            status_code=401,
        )


# --- Authorization (403) ---


class AuthorizationError(AppException):
    """Insufficient permissions."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message=message, code="AUTHORIZATION_ERROR", status_code=403)


class AdminChatForbiddenError(AppException):
    """The administrator may not use the chat flow."""

    def __init__(self) -> None:
        super().__init__(
            message="The administrator cannot start chats",
            code="ADMIN_CHAT_FORBIDDEN",
            status_code=403,
        )


# --- Not Found (404) ---


class ConversationNotFoundError(AppException):
    """Conversation not found."""

    def __init__(self) -> None:
        super().__init__(
            message="Conversation not found",
            code="CONVERSATION_NOT_FOUND",
            status_code=404,
        )


# --- Rate Limit (429) ---


class AccountLockedError(AppException):
    """Too many failed login attempts."""

    def __init__(self) -> None:
        super().__init__(
            message="Too many failed login attempts. Please try again later.",
            code="ACCOUNT_LOCKED",
            status_code=429,
        )


# --- Upstream completion (5xx) ---


class CompletionFailedError(AppException):
    """The completion provider failed; the detail stays in the logs."""

    def __init__(self) -> None:
        super().__init__(
            message="生成回复失败，请稍后再试。",
            code="COMPLETION_FAILED",
            status_code=502,
        )


class CompletionUnavailableError(AppException):
    """No API credential is configured for the completion provider."""

    def __init__(self) -> None:
        super().__init__(
            message="服务器缺少 API Key，暂时无法生成回复。",
            code="COMPLETION_UNAVAILABLE",
            status_code=503,
        )


# --- Completion gateway failures (not HTTP-facing) ---


class CompletionError(Exception):
    """Base failure raised by the completion gateway."""


class MissingCredentialError(CompletionError):
    """The provider API key is not configured."""


class ProviderError(CompletionError):
    """The provider call failed, returned an error, or timed out."""


# --- Exception Handlers ---


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": exc.status_code,
            "message": exc.message,
            "code": exc.code,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the error envelope."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={
            "status": 422,
            "message": str(message),
            "code": "VALIDATION_ERROR",
        },
    )
