"""
Inbox API endpoints.

Promote pending monsters from a player's inbox into their collection.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import Field

from monstervault.api.dependencies import get_ledger
from monstervault.api.schemas import AckResponse
from monstervault.services.inventory_ledger import InventoryLedger

router = APIRouter(prefix="/players/{player_id}/inbox", tags=["inbox"])


class ClaimAllResponse(AckResponse):
    promoted: int = Field(default=0, description="Number of monsters moved to the collection")


@router.post("/claim-all", response_model=ClaimAllResponse)
async def claim_all(
    player_id: str,
    ledger: Annotated[InventoryLedger, Depends(get_ledger)],
) -> ClaimAllResponse:
    """Claim every pending monster. Succeeds even when the inbox is empty."""
    promoted = await ledger.claim_all(player_id)
    return ClaimAllResponse(message=f"Claimed {promoted} monsters", promoted=promoted)


@router.post("/{instance_id}/claim", response_model=AckResponse)
async def claim_one(
    player_id: str,
    instance_id: str,
    ledger: Annotated[InventoryLedger, Depends(get_ledger)],
) -> AckResponse:
    """Claim one pending monster. 404 if it is not in the inbox."""
    await ledger.claim_one(player_id, instance_id)
    return AckResponse(message="Monster claimed")
