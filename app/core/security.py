"""Signed session tokens and shared-password verification.

A session token is four dot-separated fields::

    v1.<username>.<issued_at_millis>.<hex hmac-sha256>

The signature covers the first three fields. The token carries no expiry of
its own; its lifetime is the cookie max-age.
"""

import hashlib
import hmac
from datetime import datetime

from app.core.settings import AuthConfig
from app.utils.datetime_utils import now_utc

TOKEN_VERSION = "v1"


def verify_shared_password(candidate: str, expected: str) -> bool:
    """Compare a submitted password with the shared one in constant time."""
    return hmac.compare_digest(candidate.encode(), expected.encode())


class SessionCodec:
    """Issue and verify stateless session tokens."""

    def __init__(self, config: AuthConfig) -> None:
        self._secret = config.secret_key.get_secret_value().encode()
        self._allowed = frozenset(config.allowed_users)

    def issue(self, username: str, issued_at: datetime | None = None) -> str:
        """Create a signed token for an allow-listed username."""
        if username not in self._allowed:
            raise ValueError(f"User '{username}' is not allowed")
        moment = issued_at or now_utc()
        payload = f"{TOKEN_VERSION}.{username}.{int(moment.timestamp() * 1000)}"
        return f"{payload}.{self._sign(payload)}"

    def parse(self, token: str | None) -> str | None:
        """Return the username a token was issued for, or None."""
        if not token:
            return None
        parts = token.split(".")
        if len(parts) != 4:
            return None
        version, username, issued_at, signature = parts
        if version != TOKEN_VERSION:
            return None
        if not issued_at.isdigit():
            return None
        if username not in self._allowed:
            return None
        expected = self._sign(f"{version}.{username}.{issued_at}")
        if not hmac.compare_digest(expected.encode(), signature.encode()):
            return None
        return username

    def _sign(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode(), hashlib.sha256).hexdigest()
