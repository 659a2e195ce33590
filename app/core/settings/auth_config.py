"""Session authentication configuration."""

from pydantic import BaseModel, SecretStr


class AuthConfig(BaseModel, frozen=True):
    """Session cookie and login settings."""

    secret_key: SecretStr
    cookie_name: str
    max_age_days: int
    allowed_users: tuple[str, ...]
    admin_username: str
    shared_password: SecretStr
    login_rate_limit: str
    max_login_attempts: int
    login_lockout_seconds: int

    @property
    def max_age_seconds(self) -> int:
        """Cookie lifetime in seconds."""
        return self.max_age_days * 24 * 60 * 60

    def is_allowed(self, username: str) -> bool:
        """Check if a username is on the allow-list."""
        return username in self.allowed_users

    def is_admin(self, username: str | None) -> bool:
        """Check if a username is the administrator."""
        return username is not None and username == self.admin_username
