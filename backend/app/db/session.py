from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from sqlalchemy import URL, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import Settings
from ..exceptions import DatabaseConnectionError
from .base import Base

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionDescriptor:
    host: str
    port: int
    username: str
    password: str = field(repr=False)
    database: str
    driver: str = "postgresql+asyncpg"
    naming_strategy: str = "snake_case"
    synchronize: bool = True
    logging: bool = True
    keep_alive: bool = True

    @property
    def url(self) -> URL:
        return URL.create(
            self.driver,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @property
    def safe_url(self) -> str:
        return self.url.render_as_string(hide_password=True)


def connection_descriptor(settings: Settings) -> ConnectionDescriptor:
    return ConnectionDescriptor(
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        username=settings.DB_USERNAME,
        password=settings.DB_PASSWORD,
        database=settings.DB_NAME,
        synchronize=settings.DB_SYNCHRONIZE,
    )


class Database:
    """
    Owns the single async engine shared by every request, plus the session
    factory handed out through the request dependencies.
    """

    def __init__(
        self, descriptor: ConnectionDescriptor, engine: Optional[AsyncEngine] = None
    ) -> None:
        self._descriptor = descriptor
        self._engine: AsyncEngine = engine or create_async_engine(
            descriptor.url,
            echo=descriptor.logging,
            pool_pre_ping=descriptor.keep_alive,
        )
        self._session_factory = async_sessionmaker(
            self._engine, expire_on_commit=False, class_=AsyncSession
        )

    @property
    def descriptor(self) -> ConnectionDescriptor:
        return self._descriptor

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def connect(self) -> None:
        logger.info("Connecting to database %s", self._descriptor.safe_url)
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            if self._descriptor.synchronize:
                await self.create_all()
        except (SQLAlchemyError, OSError) as exc:
            raise DatabaseConnectionError(
                f"Could not connect to database {self._descriptor.safe_url}: "
                f"{type(exc).__name__}"
            ) from exc
        logger.info("Database connection established")

    async def create_all(self) -> None:
        tables = sorted(Base.metadata.tables)
        logger.warning("Synchronising schema for %d table(s): %s", len(tables), ", ".join(tables))
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self._engine.dispose()


async def create_database(settings: Settings) -> Database:
    database = Database(connection_descriptor(settings))
    await database.connect()
    return database


__all__ = ["ConnectionDescriptor", "Database", "connection_descriptor", "create_database"]
