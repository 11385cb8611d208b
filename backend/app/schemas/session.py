from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """Identity kept in the cookie session once a user has logged in."""

    id: str
    username: str | None = None
    roles: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class HealthResponse(BaseModel):
    status: str = "ok"
    environment: str
