from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError
from starlette.requests import HTTPConnection, Request

from ..schemas.session import AuthUser

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"

Serializer = Callable[[AuthUser], dict[str, Any]]
Deserializer = Callable[[dict[str, Any]], Optional[AuthUser]]


def _default_serializer(user: AuthUser) -> dict[str, Any]:
    return user.model_dump(mode="json")


def _default_deserializer(payload: dict[str, Any]) -> Optional[AuthUser]:
    return AuthUser.model_validate(payload)


class AuthSessionService:
    """
    Keeps the authenticated user in the signed cookie session.

    Nothing is written to the session until :meth:`login` runs, so anonymous
    requests never receive a session cookie.
    """

    def __init__(
        self,
        serializer: Serializer = _default_serializer,
        deserializer: Deserializer = _default_deserializer,
    ) -> None:
        self._serialize = serializer
        self._deserialize = deserializer

    def login(self, request: Request, user: AuthUser) -> None:
        request.session[SESSION_USER_KEY] = self._serialize(user)
        request.state.user = user

    def logout(self, request: Request) -> None:
        request.session.pop(SESSION_USER_KEY, None)
        request.state.user = None

    def restore(self, connection: HTTPConnection) -> Optional[AuthUser]:
        if "session" not in connection.scope:
            return None
        payload = connection.session.get(SESSION_USER_KEY)
        if not payload:
            return None
        try:
            return self._deserialize(payload)
        except (ValidationError, TypeError, KeyError):
            logger.warning("Dropping unreadable user from session")
            connection.session.pop(SESSION_USER_KEY, None)
            return None
