"""Response models shared by the inventory routers."""

from datetime import datetime

from pydantic import BaseModel, Field

from monstervault.models.monster import MonsterInstance
from monstervault.models.player import GiftRecord


class MonsterResponse(BaseModel):
    """A monster instance as returned to clients."""

    instance_id: str
    template_id: str
    name: str
    element: str
    rarity: str
    attack: int
    defense: int
    hp: int
    reason: str | None = Field(
        default=None,
        description="Why the monster is pending (welcome, eval, gift, code); inbox only",
    )

    @classmethod
    def from_model(cls, monster: MonsterInstance) -> "MonsterResponse":
        return cls(
            instance_id=monster.instance_id,
            template_id=monster.template_id,
            name=monster.name,
            element=monster.element,
            rarity=monster.rarity.value,
            attack=monster.attack,
            defense=monster.defense,
            hp=monster.hp,
            reason=monster.reason.value if monster.reason else None,
        )


class AckResponse(BaseModel):
    """Acknowledgement for operations with no payload."""

    ok: bool = True
    message: str = ""


class GiftResponse(BaseModel):
    gift_id: int
    sender_id: str
    recipient_id: str
    instance_id: str
    template_id: str
    created_at: datetime

    @classmethod
    def from_model(cls, gift: GiftRecord) -> "GiftResponse":
        return cls(
            gift_id=gift.gift_id,
            sender_id=gift.sender_id,
            recipient_id=gift.recipient_id,
            instance_id=gift.instance_id,
            template_id=gift.template_id,
            created_at=gift.created_at,
        )
