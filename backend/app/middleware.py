"""
ASGI middleware for the HTTP server.

Everything here is plain ASGI so that exceptions raised by the application,
including those raised while a request body is being read, reach the
exception handlers unwrapped.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from fastapi import Request, Response, status
from starlette.datastructures import Headers
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .core.security import check_basic_credentials, parse_basic_authorization
from .exceptions import PayloadTooLargeError, error_response, unhandled_exception_handler
from .services.session import AuthSessionService

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 100 * 1024 * 1024
PAYLOAD_TOO_LARGE = 413
LIMITED_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded")


class UnhandledErrorMiddleware:
    """
    Answers unexpected exceptions with the uniform 500 response.

    It sits just inside CORS, so error responses still carry the CORS headers.
    An exception raised after the response has started is re-raised.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as exc:
            if response_started:
                raise
            response = await unhandled_exception_handler(Request(scope), exc)
            await response(scope, receive, send)


class BodySizeLimitMiddleware:
    """
    Rejects JSON and form-encoded bodies larger than ``max_body_size`` bytes.

    A declared ``Content-Length`` over the limit is answered with 413 straight
    away; chunked bodies are counted while the application reads them.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_body_size: int = MAX_BODY_SIZE,
        content_types: Iterable[str] = LIMITED_CONTENT_TYPES,
    ) -> None:
        self.app = app
        self.max_body_size = max_body_size
        self.content_types = tuple(content_types)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        content_type = headers.get("content-type", "").split(";", 1)[0].strip().lower()
        if content_type not in self.content_types:
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_size:
            response = self._too_large(scope.get("path", ""))
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    raise PayloadTooLargeError(self.max_body_size)
            return message

        await self.app(scope, limited_receive, send)

    def _too_large(self, path: str) -> Response:
        return error_response(
            PAYLOAD_TOO_LARGE,
            f"Request body exceeds {self.max_body_size} bytes",
            path,
            PayloadTooLargeError.code,
        )


class BasicAuthMiddleware:
    """HTTP basic auth in front of a fixed set of path prefixes."""

    def __init__(
        self,
        app: ASGIApp,
        paths: Iterable[str],
        users: Mapping[str, str],
        challenge: bool = True,
        realm: str = "",
    ) -> None:
        self.app = app
        self._paths = tuple(path.rstrip("/") or "/" for path in paths)
        self._users = dict(users)
        self._challenge = challenge
        self._realm = realm

    def is_protected(self, path: str) -> bool:
        return any(path == prefix or path.startswith(prefix + "/") for prefix in self._paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.is_protected(scope["path"]):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        credentials = parse_basic_authorization(connection.headers.get("authorization"))
        if credentials and check_basic_credentials(self._users, *credentials):
            await self.app(scope, receive, send)
            return

        logger.info("Rejected unauthenticated request to %s", scope["path"])
        headers = {}
        if self._challenge:
            headers["WWW-Authenticate"] = f'Basic realm="{self._realm}"'
        response = error_response(
            status.HTTP_401_UNAUTHORIZED,
            "Not authenticated",
            scope["path"],
            headers=headers,
        )
        await response(scope, receive, send)


class AuthSessionMiddleware:
    """Restores ``request.state.user`` from the cookie session on every request."""

    def __init__(self, app: ASGIApp, auth_sessions: AuthSessionService) -> None:
        self.app = app
        self._auth_sessions = auth_sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            user = self._auth_sessions.restore(HTTPConnection(scope))
            scope.setdefault("state", {})["user"] = user
        await self.app(scope, receive, send)


__all__ = [
    "AuthSessionMiddleware",
    "BasicAuthMiddleware",
    "BodySizeLimitMiddleware",
    "LIMITED_CONTENT_TYPES",
    "MAX_BODY_SIZE",
    "UnhandledErrorMiddleware",
]
