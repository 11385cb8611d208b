"""
Error types and the global error-response filter.

Every failure that reaches the client leaves the process in one shape::

    {"success": false, "status_code": 404, "code": "NOT_FOUND",
     "detail": "...", "path": "/api/...", "timestamp": "..."}
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Mapping, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.security import now_utc

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base class for errors the API reports with a specific status and code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"

    def __init__(
        self,
        detail: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}


class DatabaseConnectionError(AppException):
    code = "DATABASE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StorageError(AppException):
    code = "STORAGE_ERROR"
    status_code = status.HTTP_502_BAD_GATEWAY


class PayloadTooLargeError(HTTPException):
    """Raised while a request body is read once it passes the size limit."""

    code = "PAYLOAD_TOO_LARGE"

    def __init__(self, limit: int) -> None:
        super().__init__(status_code=413, detail=f"Request body exceeds {limit} bytes")
        self.limit = limit


def error_payload(
    status_code: int,
    detail: Any,
    path: str,
    code: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "status_code": status_code,
        "code": code or _default_code(status_code),
        "detail": detail,
        "path": path,
        "timestamp": now_utc().isoformat(),
    }
    payload.update(extra)
    return jsonable_encoder(payload)


def error_response(
    status_code: int,
    detail: Any,
    path: str,
    code: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_payload(status_code, detail, path, code, **extra),
        headers=dict(headers) if headers else None,
    )


def _default_code(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return "HTTP_ERROR"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.detail)
    return error_response(exc.status_code, exc.detail, request.url.path, exc.code, **exc.extra)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(
        exc.status_code,
        exc.detail,
        request.url.path,
        getattr(exc, "code", None),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        request.url.path,
        "VALIDATION_ERROR",
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        request.url.path,
        "INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "AppException",
    "DatabaseConnectionError",
    "PayloadTooLargeError",
    "StorageError",
    "error_payload",
    "error_response",
    "register_exception_handlers",
    "unhandled_exception_handler",
]
