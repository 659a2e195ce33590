"""Redis-backed failed-login counter and lockout."""

import redis.asyncio as redis

LOGIN_ATTEMPTS_PREFIX = "login_attempts:"


class LoginAttemptService:
    """Counts failed logins per username; the counter expires with the lockout."""

    def __init__(
        self,
        redis_client: redis.Redis,  # type: ignore[type-arg]
        max_attempts: int,
        lockout_seconds: int,
        key_prefix: str = "",
    ) -> None:
        self._redis = redis_client
        self._max_attempts = max_attempts
        self._lockout_seconds = lockout_seconds
        self._key_prefix = key_prefix

    def _key(self, username: str) -> str:
        return f"{self._key_prefix}{LOGIN_ATTEMPTS_PREFIX}{username}"

    async def record_failed_login(self, username: str) -> int:
        """Record a failed login attempt, return total count."""
        key = self._key(username)
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, self._lockout_seconds)
        return int(count)

    async def reset_login_attempts(self, username: str) -> None:
        """Clear failed login attempts after successful login."""
        await self._redis.delete(self._key(username))

    async def get_login_attempts(self, username: str) -> int:
        """Get current failed login attempt count."""
        result = await self._redis.get(self._key(username))
        return int(result) if result else 0

    async def is_locked(self, username: str) -> bool:
        return await self.get_login_attempts(username) >= self._max_attempts
