"""
Health check endpoints.

`/health` is a liveness probe. `/ready` checks that the catalog and team
tables can be read and reports their row counts.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select

from pokeroster.db.database import Database, get_database
from pokeroster.models.db import CatalogDetailDB, CatalogPageDB, TeamDB, TeamMemberDB
from pokeroster.models.failure import StoreFailureError

router = APIRouter(tags=["health"])

_REQUIRED_TABLES = (CatalogPageDB, CatalogDetailDB, TeamDB, TeamMemberDB)


class HealthResponse(BaseModel):
    status: str


class ReadyResponse(BaseModel):
    status: str
    database: str
    tables: dict[str, int] = {}
    detail: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not touch the store."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse}},
)
async def ready(
    response: Response,
    database: Annotated[Database, Depends(get_database)],
) -> ReadyResponse:
    """
    Readiness probe.

    Returns 503 when the store is unreachable or a table is missing.
    """
    counts: dict[str, int] = {}
    try:
        async with database.read() as session:
            for model in _REQUIRED_TABLES:
                result = await session.execute(select(func.count()).select_from(model))
                counts[model.__tablename__] = result.scalar_one()
    except StoreFailureError as e:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadyResponse(status="not ready", database="unavailable", detail=e.detail)
    return ReadyResponse(status="ready", database="connected", tables=counts)
