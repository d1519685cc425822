from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class InboxReason(str, Enum):
    """Why an instance is waiting in a player's inbox."""

    WELCOME = "welcome"
    EVAL = "eval"
    GIFT = "gift"
    CODE = "code"


class Rarity(str, Enum):
    COMMON = "Common"
    RARE = "Rare"
    EPIC = "Epic"


@dataclass(frozen=True)
class MonsterTemplate:
    """
    A catalog entry describing a monster species at a given rarity.

    Templates can be rebalanced later; instances minted from them keep
    the stats they were minted with.
    """

    template_id: str
    name: str
    element: str
    rarity: Rarity
    attack: int
    defense: int
    hp: int
    image: str = ""

    def mint(
        self,
        instance_id: str,
        reason: InboxReason | None,
        minted_at: datetime | None = None,
    ) -> "MonsterInstance":
        """Create a new instance carrying a snapshot of this template's stats."""
        return MonsterInstance(
            instance_id=instance_id,
            template_id=self.template_id,
            name=self.name,
            element=self.element,
            rarity=self.rarity,
            attack=self.attack,
            defense=self.defense,
            hp=self.hp,
            reason=reason,
            minted_at=minted_at,
        )


@dataclass(frozen=True)
class MonsterInstance:
    """
    One uniquely identified collectible.

    `reason` is only set while the instance sits in an inbox.
    """

    instance_id: str
    template_id: str
    name: str
    element: str
    rarity: Rarity
    attack: int
    defense: int
    hp: int
    reason: InboxReason | None = None
    minted_at: datetime | None = None

    def with_reason(self, reason: InboxReason | None) -> "MonsterInstance":
        """Return a copy tagged with a different inbox reason."""
        return replace(self, reason=reason)
