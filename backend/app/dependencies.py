from __future__ import annotations

from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from .container import AppContainer
from .schemas.session import AuthUser
from .services.storage import StorageService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def get_db_session(
    container: AppContainer = Depends(get_container),
) -> AsyncIterator[AsyncSession]:
    async with container.database.session() as session:
        yield session


def get_storage(container: AppContainer = Depends(get_container)) -> StorageService:
    return container.storage


async def get_current_user(request: Request) -> Optional[AuthUser]:
    return getattr(request.state, "user", None)


async def require_user(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user
