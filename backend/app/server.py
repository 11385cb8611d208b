"""
HTTP application factory.

The middleware list is ordered outermost first: CORS, the unexpected-error
responder, body limits, cookie session, basic auth in front of the docs, then
the auth-session restore.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware

from .config import Settings
from .container import AppContainer
from .exceptions import register_exception_handlers
from .middleware import (
    MAX_BODY_SIZE,
    AuthSessionMiddleware,
    BasicAuthMiddleware,
    BodySizeLimitMiddleware,
    UnhandledErrorMiddleware,
)
from .routers import health
from .serialization import EntitySerializingRoute

logger = logging.getLogger(__name__)

API_TITLE = "my-page-project API"
API_DESCRIPTION = "SQLAlchemy in FastAPI"
API_VERSION = "0.0.1"
DOCS_PATH = "/docs"
OPENAPI_PATH = "/docs-json"


def build_middleware(
    settings: Settings, container: AppContainer, max_body_size: int = MAX_BODY_SIZE
) -> List[Middleware]:
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(UnhandledErrorMiddleware),
        Middleware(BodySizeLimitMiddleware, max_body_size=max_body_size),
        Middleware(
            SessionMiddleware,
            secret_key=settings.SESSION_SECRET,
            https_only=settings.is_production,
        ),
        Middleware(
            BasicAuthMiddleware,
            paths=(DOCS_PATH, OPENAPI_PATH),
            users={settings.ADMIN_USER: settings.ADMIN_PASSWORD},
            challenge=True,
        ),
        Middleware(AuthSessionMiddleware, auth_sessions=container.auth_sessions),
    ]


def create_application(
    settings: Settings,
    container: Optional[AppContainer] = None,
    max_body_size: int = MAX_BODY_SIZE,
) -> FastAPI:
    container = container or AppContainer.build(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await container.startup(app)
        except Exception as exc:
            logger.critical("Server error %s", exc)
            raise
        if settings.is_development:
            logger.info("Server on http://localhost:%s", settings.PORT)
        else:
            logger.info("Server on port %s...", settings.PORT)
        try:
            yield
        finally:
            await container.shutdown(app)

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url=DOCS_PATH,
        openapi_url=OPENAPI_PATH,
        redoc_url=None,
        servers=[
            {"url": f"http://localhost:{settings.PORT}", "description": "Development server"}
        ],
        middleware=build_middleware(settings, container, max_body_size),
        lifespan=lifespan,
    )
    app.state.container = container
    app.router.route_class = EntitySerializingRoute

    register_exception_handlers(app)
    app.include_router(health.router)

    return app


__all__ = ["API_TITLE", "DOCS_PATH", "OPENAPI_PATH", "build_middleware", "create_application"]
