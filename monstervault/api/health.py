"""
Liveness and readiness probes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from monstervault.api.dependencies import Catalog
from monstervault.db.database import get_session
from monstervault.models.db import PlayerDB

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str | None = None
    templates: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Process is up. Touches nothing else."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    catalog: Catalog,
) -> HealthResponse:
    """
    Ready to serve inventory traffic.

    Queries the players table, so a reachable database with missing
    tables also reports 503.
    """
    templates = len(catalog.templates())
    try:
        await session.execute(select(PlayerDB.player_id).limit(1))
    except (SQLAlchemyError, OSError):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", templates=templates)
    return HealthResponse(status="ready", database="connected", templates=templates)
