"""Authentication business logic."""

import structlog

from app.core.exceptions import AccountLockedError, InvalidCredentialsError
from app.core.security import SessionCodec, verify_shared_password
from app.core.settings import AuthConfig
from app.schemas.auth_schema import LoginRequest, LoginResult
from app.services.login_attempt_service import LoginAttemptService

logger = structlog.get_logger()


class AuthService:
    """Checks shared-password logins and issues session tokens."""

    def __init__(
        self,
        config: AuthConfig,
        codec: SessionCodec,
        attempts: LoginAttemptService,
    ) -> None:
        self._config = config
        self._codec = codec
        self._attempts = attempts

    async def login(self, request: LoginRequest) -> LoginResult:
        """Authenticate a username/password pair and return a session token."""
        username = request.username
        if not self._config.is_allowed(username):
            logger.info("Login failed, unknown username", username=username)
            raise InvalidCredentialsError

        if await self._attempts.is_locked(username):
            logger.warning("Login rejected, account locked", username=username)
            raise AccountLockedError

        if not verify_shared_password(
            request.password, self._config.shared_password.get_secret_value()
        ):
            count = await self._attempts.record_failed_login(username)
            logger.info("Login failed", username=username, attempts=count)
            raise InvalidCredentialsError

        await self._attempts.reset_login_attempts(username)
        logger.info("User logged in", username=username)

        return LoginResult(username=username, token=self._codec.issue(username))
