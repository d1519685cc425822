"""
Gift API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from monstervault.api.dependencies import get_gift_broker
from monstervault.api.schemas import AckResponse, GiftResponse
from monstervault.services.gift_broker import GiftBroker

router = APIRouter(tags=["gifts"])


class GiftRequest(BaseModel):
    """Request model for gifting one monster."""

    sender_id: str = Field(..., description="Player giving the monster")
    recipient_id: str = Field(..., description="Player receiving the monster")
    instance_id: str = Field(..., description="Instance to transfer from the sender's collection")


class GiftAckResponse(AckResponse):
    gift: GiftResponse


class GiftListResponse(BaseModel):
    player_id: str
    gifts: list[GiftResponse] = Field(default_factory=list)


@router.post("/gifts", response_model=GiftAckResponse)
async def send_gift(
    request: GiftRequest,
    broker: Annotated[GiftBroker, Depends(get_gift_broker)],
) -> GiftAckResponse:
    """Move one monster from the sender's collection into the recipient's inbox."""
    gift = await broker.gift(request.sender_id, request.recipient_id, request.instance_id)
    return GiftAckResponse(
        message="Monster successfully gifted!",
        gift=GiftResponse.from_model(gift),
    )


@router.get("/players/{player_id}/gifts", response_model=GiftListResponse)
async def list_received_gifts(
    player_id: str,
    broker: Annotated[GiftBroker, Depends(get_gift_broker)],
) -> GiftListResponse:
    """Most recent gifts received by the player, newest first."""
    gifts = await broker.recent_gifts(player_id)
    return GiftListResponse(
        player_id=player_id,
        gifts=[GiftResponse.from_model(g) for g in gifts],
    )


@router.delete("/players/{player_id}/gifts/{gift_id}", response_model=AckResponse)
async def dismiss_gift(
    player_id: str,
    gift_id: int,
    broker: Annotated[GiftBroker, Depends(get_gift_broker)],
) -> AckResponse:
    """Remove one gift from the player's received list. Inventory is untouched."""
    await broker.dismiss(player_id, gift_id)
    return AckResponse(message="Gift removed")
