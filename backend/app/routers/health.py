from __future__ import annotations

from fastapi import APIRouter, Depends

from .. import dependencies
from ..container import AppContainer
from ..schemas.session import HealthResponse
from ..serialization import EntitySerializingRoute

router = APIRouter(prefix="/api", tags=["health"], route_class=EntitySerializingRoute)


@router.get("/health", response_model=HealthResponse)
async def healthcheck(
    container: AppContainer = Depends(dependencies.get_container),
) -> HealthResponse:
    return HealthResponse(environment=container.settings.NODE_ENV)
