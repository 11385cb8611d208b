"""
Environment configuration loader and validation.

Values are read from an env file chosen by ``NODE_ENV`` (``.env.production``
in production, ``.env.development`` otherwise) and from the process
environment, which takes precedence.  The schema below is validated once at
startup; a missing required key or a value that fails coercion aborts the
process before anything else is wired.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION = "production"
DEVELOPMENT = "development"


class ConfigurationError(RuntimeError):
    """Raised when the environment does not satisfy the settings schema."""

    def __init__(self, env_file: Path | str | None, errors: list[dict[str, Any]]) -> None:
        self.env_file = env_file
        self.errors = errors
        self.keys = [".".join(str(part) for part in err["loc"]) for err in errors]
        problems = "; ".join(
            f"{key}: {err['msg']}" for key, err in zip(self.keys, errors)
        )
        super().__init__(f"Invalid configuration (env file: {env_file}): {problems}")


class Settings(BaseSettings):
    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    NODE_ENV: str = Field(default=DEVELOPMENT)
    PORT: int = Field(default=8989, ge=1, le=65535)
    LOG_LEVEL: Optional[str] = Field(default=None)

    # -------------------------------------------------------------------------
    # Admin credentials (API documentation) and session signing
    # -------------------------------------------------------------------------
    ADMIN_USER: str
    ADMIN_PASSWORD: str = Field(repr=False)
    SESSION_SECRET: str = Field(repr=False)

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    DB_USERNAME: str
    DB_PASSWORD: str = Field(repr=False)
    DB_HOST: str
    DB_PORT: int
    DB_NAME: str
    DB_SYNCHRONIZE: bool = Field(default=True)

    # -------------------------------------------------------------------------
    # Object storage (MinIO / S3 compatible)
    # -------------------------------------------------------------------------
    MINIO_ENDPOINT: str
    MINIO_PORT: str
    MINIO_USE_SSL: bool = Field(default=False)
    MINIO_ACCESS_KEY: str
    MINIO_SECRET_KEY: str = Field(repr=False)
    MINIO_PUBLIC_BUCKET_NAME: str
    MINIO_URL: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    def get(self, key: str) -> Any:
        """Look a validated value up by its environment variable name."""
        if key not in type(self).model_fields:
            raise KeyError(key)
        return getattr(self, key)

    @property
    def is_production(self) -> bool:
        return self.NODE_ENV == PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.NODE_ENV == DEVELOPMENT

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.is_development else "INFO"


def env_file_for(node_env: Optional[str]) -> str:
    if node_env == PRODUCTION:
        return ".env.production"
    return ".env.development"


def load_settings(env_file: Path | str | None = None) -> Settings:
    """
    Validate the environment against :class:`Settings`.

    Parameters
    ----------
    env_file:
        Explicit env file.  Defaults to the file selected by the ``NODE_ENV``
        process variable, resolved against the working directory.
    """

    if env_file is None:
        env_file = env_file_for(os.environ.get("NODE_ENV"))

    try:
        return Settings(_env_file=env_file)
    except ValidationError as exc:
        raise ConfigurationError(env_file, exc.errors(include_input=False)) from None


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded once; failures are not cached."""
    return load_settings()


__all__ = [
    "ConfigurationError",
    "Settings",
    "env_file_for",
    "get_settings",
    "load_settings",
]
