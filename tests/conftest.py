"""
Shared fixtures.

Every test runs in an empty temporary working directory with none of the
settings variables present in the process environment, so nothing leaks in
from a developer's ``.env.development`` or shell.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from app.config import Settings, get_settings
from app.container import AppContainer
from app.db import Database, connection_descriptor
from app.server import create_application
from app.services.session import AuthSessionService
from app.services.storage import StorageService

VALID_ENV = {
    "NODE_ENV": "development",
    "PORT": "8989",
    "ADMIN_USER": "admin",
    "ADMIN_PASSWORD": "admin-pass",
    "SESSION_SECRET": "session-secret-for-tests",
    "DB_USERNAME": "mypage",
    "DB_PASSWORD": "db-secret-pw",
    "DB_HOST": "db.internal",
    "DB_PORT": "5432",
    "DB_NAME": "mypage",
    "MINIO_ENDPOINT": "minio.internal",
    "MINIO_PORT": "9000",
    "MINIO_USE_SSL": "false",
    "MINIO_ACCESS_KEY": "minio-access",
    "MINIO_SECRET_KEY": "minio-secret",
    "MINIO_PUBLIC_BUCKET_NAME": "public",
    "MINIO_URL": "http://cdn.example.com",
}


def make_settings(**overrides: Any) -> Settings:
    return Settings(_env_file=None, **{**VALID_ENV, **overrides})


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for key in Settings.model_fields:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'app.db'}"


@pytest.fixture
async def database(settings: Settings, sqlite_url: str):
    db = Database(connection_descriptor(settings), engine=create_async_engine(sqlite_url))
    await db.connect()
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture
def storage_client() -> MagicMock:
    return MagicMock(name="s3-client")


@pytest.fixture
def container(settings: Settings, sqlite_url: str, storage_client: MagicMock) -> AppContainer:
    return AppContainer(
        settings=settings,
        database=Database(connection_descriptor(settings), engine=create_async_engine(sqlite_url)),
        storage=StorageService(settings, client=storage_client),
        auth_sessions=AuthSessionService(),
    )


@pytest.fixture
def app(settings: Settings, container: AppContainer):
    return create_application(settings, container)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
