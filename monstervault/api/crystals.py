"""
Crystal API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from monstervault.api.dependencies import get_accrual_engine
from monstervault.services.crystal_accrual import CrystalAccrualEngine

router = APIRouter(prefix="/players/{player_id}/crystals", tags=["crystals"])


class RefreshRequest(BaseModel):
    total_elapsed_hours: float = Field(
        ...,
        ge=0,
        description="Cumulative tracked presence hours reported for the player",
    )


class RefreshResponse(BaseModel):
    player_id: str
    earned: int
    total_balance: int


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_crystals(
    player_id: str,
    request: RefreshRequest,
    engine: Annotated[CrystalAccrualEngine, Depends(get_accrual_engine)],
) -> RefreshResponse:
    """
    Convert presence time since the last refresh into crystals.

    Limited to one refresh per cooldown window; early calls get 429.
    """
    result = await engine.accrue(player_id, request.total_elapsed_hours)
    return RefreshResponse(
        player_id=player_id,
        earned=result.earned,
        total_balance=result.total_balance,
    )
