"""ASGI access gate: session cookie parsing and route-level policy."""

import json

import structlog
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Receive, Scope, Send

from app.core.access_policy import AccessPolicy
from app.core.security import SessionCodec

logger = structlog.get_logger()


class AccessGateMiddleware:
    """Pure ASGI middleware resolving identity and enforcing the access policy."""

    def __init__(
        self,
        app: ASGIApp,
        codec: SessionCodec,
        policy: AccessPolicy,
        cookie_name: str,
    ) -> None:
        self.app = app
        self.codec = codec
        self.policy = policy
        self.cookie_name = cookie_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        username = self.codec.parse(
            HTTPConnection(scope).cookies.get(self.cookie_name)
        )
        scope.setdefault("state", {})
        scope["state"]["username"] = username

        if scope.get("method", "") == "OPTIONS":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        decision = self.policy.evaluate(path, username)

        if decision.action == "allow":
            await self.app(scope, receive, send)
            return

        if decision.action == "redirect":
            logger.debug("Access gate redirect", path=path, location=decision.location)
            await self._send_redirect(send, decision.location)
            return

        await self._send_error(send, 401, "NOT_AUTHENTICATED", "Not authenticated")

    @staticmethod
    async def _send_redirect(send: Send, location: str) -> None:
        """Send a temporary redirect directly."""
        await send(
            {
                "type": "http.response.start",
                "status": 307,
                "headers": [
                    [b"location", location.encode()],
                    [b"content-length", b"0"],
                ],
            }
        )
        await send({"type": "http.response.body", "body": b""})

    @staticmethod
    async def _send_error(send: Send, status: int, code: str, message: str) -> None:
        """Send a JSON error response directly."""
        body = json.dumps({"status": status, "message": message, "code": code}).encode()

        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
