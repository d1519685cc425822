"""
Player API endpoints.

Login upsert, profile reads, name lookup and evaluation rewards. The
third-party login handshake happens upstream; these endpoints receive an
already-authenticated player id.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from monstervault.api.dependencies import get_player_service, get_reward_orchestrator
from monstervault.api.schemas import MonsterResponse
from monstervault.models.player import Player
from monstervault.services.players import PlayerService
from monstervault.services.reward_grants import RewardGrantOrchestrator

router = APIRouter(prefix="/players", tags=["players"])


class RegisterRequest(BaseModel):
    """Request model for first login / login refresh."""

    player_id: str = Field(..., description="Stable external player id", examples=["42-12345"])
    name: str = Field(..., description="Display name", examples=["jdoe"])


class PlayerResponse(BaseModel):
    """Response model for a player's inventory and balance."""

    player_id: str
    name: str
    monsters: list[MonsterResponse] = Field(default_factory=list)
    inbox: list[MonsterResponse] = Field(default_factory=list)
    monster_count: int = 0
    crystals: int = 0
    last_accrual_checkpoint: float = 0.0

    @classmethod
    def from_model(cls, player: Player) -> "PlayerResponse":
        return cls(
            player_id=player.player_id,
            name=player.name,
            monsters=[MonsterResponse.from_model(m) for m in player.monsters],
            inbox=[MonsterResponse.from_model(m) for m in player.inbox],
            monster_count=player.monster_count,
            crystals=player.crystals,
            last_accrual_checkpoint=player.last_accrual_checkpoint,
        )


class RegisterResponse(PlayerResponse):
    created: bool = False


class FindPlayerResponse(BaseModel):
    exists: bool
    player_id: str | None = None


class EvaluationGrantRequest(BaseModel):
    evaluation_ids: list[str] = Field(
        ...,
        description="External evaluation ids completed by the player",
        examples=[["7731", "7732"]],
    )


class EvaluationGrantResponse(BaseModel):
    player_id: str
    granted: list[MonsterResponse] = Field(default_factory=list)


@router.post("", response_model=RegisterResponse)
async def register_player(
    request: RegisterRequest,
    players: Annotated[PlayerService, Depends(get_player_service)],
) -> RegisterResponse:
    """
    Create the player on first login, or refresh the display name.

    New players receive welcome monsters in their inbox.
    """
    player, created = await players.register(request.player_id, request.name)
    base = PlayerResponse.from_model(player)
    return RegisterResponse(**base.model_dump(), created=created)


@router.get("/by-name/{name}", response_model=FindPlayerResponse)
async def find_player(
    name: str,
    players: Annotated[PlayerService, Depends(get_player_service)],
) -> FindPlayerResponse:
    """Look up a player id by display name, e.g. to pick a gift recipient."""
    player_id = await players.find_by_name(name)
    return FindPlayerResponse(exists=player_id is not None, player_id=player_id)


@router.get("/{player_id}", response_model=PlayerResponse)
async def get_player(
    player_id: str,
    players: Annotated[PlayerService, Depends(get_player_service)],
) -> PlayerResponse:
    """Get a player's collection, inbox and crystal balance."""
    player = await players.get(player_id)
    return PlayerResponse.from_model(player)


@router.post("/{player_id}/evaluations", response_model=EvaluationGrantResponse)
async def grant_evaluation_rewards(
    player_id: str,
    request: EvaluationGrantRequest,
    rewards: Annotated[RewardGrantOrchestrator, Depends(get_reward_orchestrator)],
) -> EvaluationGrantResponse:
    """Grant one monster per evaluation not rewarded before. Replays grant nothing."""
    granted = await rewards.grant_for_evaluations(player_id, request.evaluation_ids)
    return EvaluationGrantResponse(
        player_id=player_id,
        granted=[MonsterResponse.from_model(m) for m in granted],
    )
