"""
Claim code API endpoints.

Administrative creation and player redemption.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from monstervault.api.dependencies import get_catalog, get_registry, get_reward_orchestrator
from monstervault.api.schemas import MonsterResponse
from monstervault.services.claim_codes import ClaimCodeRegistry, normalize_code
from monstervault.services.monster_catalog import MonsterCatalog
from monstervault.services.reward_grants import RewardGrantOrchestrator

router = APIRouter(tags=["codes"])


class CreateCodeRequest(BaseModel):
    code: str = Field(..., description="Case-insensitive code", examples=["HELLOWORLD"])
    template_id: str = Field(..., description="Monster template granted", examples=["ice-rare"])
    expires_at: datetime = Field(..., description="Redemption deadline (UTC if no offset)")


class CodeResponse(BaseModel):
    code: str
    template_id: str
    expires_at: datetime
    claimed_count: int = 0
    created: bool = False


class RedeemResponse(BaseModel):
    player_id: str
    code: str
    monster: MonsterResponse


@router.post("/codes", response_model=CodeResponse)
async def create_code(
    request: CreateCodeRequest,
    registry: Annotated[ClaimCodeRegistry, Depends(get_registry)],
    catalog: Annotated[MonsterCatalog, Depends(get_catalog)],
) -> CodeResponse:
    """
    Create a claim code. Repeating the call leaves the existing code untouched.
    """
    # Fail early on unknown templates rather than at redemption time
    catalog.resolve(request.template_id)
    claim_code, created = await registry.create(
        request.code, request.template_id, request.expires_at
    )
    return CodeResponse(
        code=claim_code.code,
        template_id=claim_code.template_id,
        expires_at=claim_code.expires_at,
        claimed_count=len(claim_code.claimed_by),
        created=created,
    )


@router.post("/players/{player_id}/codes/{code}/redeem", response_model=RedeemResponse)
async def redeem_code(
    player_id: str,
    code: str,
    rewards: Annotated[RewardGrantOrchestrator, Depends(get_reward_orchestrator)],
) -> RedeemResponse:
    """Redeem a code; the minted monster lands in the player's inbox."""
    monster = await rewards.grant_from_code(player_id, code)
    return RedeemResponse(
        player_id=player_id,
        code=normalize_code(code),
        monster=MonsterResponse.from_model(monster),
    )
