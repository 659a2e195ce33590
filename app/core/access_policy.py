"""Route-level access rules applied before any handler runs."""

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlencode

PUBLIC_PATHS: set[str] = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
    "/api/auth/login",
    "/api/auth/logout",
    "/api/auth/me",
}

PUBLIC_PREFIXES: tuple[str, ...] = ("/static/", "/docs/", "/redoc/")

STATIC_ASSET = re.compile(r"^/.*\.(?:svg|png|jpg|jpeg|gif|ico|txt|json|js|css|map)$")

ADMIN_PREFIXES: tuple[str, ...] = ("/admin", "/metrics")

LOGIN_PAGE = "/login"
LANDING_PAGE = "/"
ADMIN_PAGE = "/admin"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of evaluating a request path against the policy."""

    action: Literal["allow", "redirect", "unauthorized"]
    # Target of a redirect; empty for the other actions.
    location: str = ""

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(action="allow")

    @classmethod
    def redirect(cls, location: str) -> "AccessDecision":
        return cls(action="redirect", location=location)

    @classmethod
    def unauthorized(cls) -> "AccessDecision":
        return cls(action="unauthorized")


def _matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


class AccessPolicy:
    """Classifies paths and decides allow, redirect, or reject."""

    def __init__(self, admin_username: str) -> None:
        self._admin = admin_username

    def is_admin(self, username: str | None) -> bool:
        return username is not None and username == self._admin

    def is_public(self, path: str) -> bool:
        normalized = path.rstrip("/") or "/"
        if normalized in PUBLIC_PATHS:
            return True
        if path.startswith(PUBLIC_PREFIXES):
            return True
        return bool(STATIC_ASSET.match(path))

    @staticmethod
    def is_api(path: str) -> bool:
        return path == "/api" or path.startswith("/api/")

    def evaluate(self, path: str, username: str | None) -> AccessDecision:
        """Decide what to do with a request for ``path`` by ``username``."""
        if _matches_prefix(path, LOGIN_PAGE):
            if self.is_admin(username):
                return AccessDecision.redirect(ADMIN_PAGE)
            if username:
                return AccessDecision.redirect(LANDING_PAGE)
            return AccessDecision.allow()

        if self.is_public(path):
            return AccessDecision.allow()

        if any(_matches_prefix(path, prefix) for prefix in ADMIN_PREFIXES):
            if self.is_admin(username):
                return AccessDecision.allow()
            return AccessDecision.redirect(LANDING_PAGE)

        if path == LANDING_PAGE and self.is_admin(username):
            return AccessDecision.redirect(ADMIN_PAGE)

        if username:
            return AccessDecision.allow()

        if self.is_api(path):
            return AccessDecision.unauthorized()
        return AccessDecision.redirect(f"{LOGIN_PAGE}?{urlencode({'next': path})}")

    def can_access_conversation(self, username: str | None, owner: str | None) -> bool:
        """Owner-or-admin check; rows without an owner belong to the admin."""
        if username is None:
            return False
        if self.is_admin(username):
            return True
        return username == (owner or self._admin)
