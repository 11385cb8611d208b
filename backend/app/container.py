from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI

from .config import Settings
from .db import Database, connection_descriptor
from .services.session import AuthSessionService
from .services.storage import StorageService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    settings: Settings
    database: Database
    storage: StorageService
    auth_sessions: AuthSessionService

    @classmethod
    def build(cls, settings: Settings) -> "AppContainer":
        return cls(
            settings=settings,
            database=Database(connection_descriptor(settings)),
            storage=StorageService(settings),
            auth_sessions=AuthSessionService(),
        )

    async def startup(self, app: FastAPI) -> None:
        await self.database.connect()
        app.state.container = self

    async def shutdown(self, app: FastAPI) -> None:
        await self.database.dispose()
        logger.info("Database connection closed")
