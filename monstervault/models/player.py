from dataclasses import dataclass, field
from datetime import datetime

from monstervault.models.monster import MonsterInstance


@dataclass
class Player:
    """
    A normalized snapshot of a player's inventory and currency.

    Built once from the stored record; every field is populated.
    """

    player_id: str
    name: str
    monsters: list[MonsterInstance] = field(default_factory=list)
    inbox: list[MonsterInstance] = field(default_factory=list)
    monster_count: int = 0
    granted_evaluations: set[str] = field(default_factory=set)
    crystals: int = 0
    last_accrual_checkpoint: float = 0.0
    last_accrual_at: datetime | None = None

    def owns(self, instance_id: str) -> bool:
        """Check if an instance is in the permanent collection."""
        return any(m.instance_id == instance_id for m in self.monsters)

    def has_pending(self, instance_id: str) -> bool:
        """Check if an instance is waiting in the inbox."""
        return any(m.instance_id == instance_id for m in self.inbox)


@dataclass(frozen=True)
class GiftRecord:
    """Immutable audit record of a completed gift."""

    gift_id: int
    sender_id: str
    recipient_id: str
    instance_id: str
    template_id: str
    created_at: datetime


@dataclass(frozen=True)
class AccrualResult:
    """Outcome of a crystal accrual attempt."""

    earned: int
    total_balance: int
    checkpoint: float
