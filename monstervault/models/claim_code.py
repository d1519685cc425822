from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ClaimCode:
    """
    A redeemable code granting one monster template.

    Codes are single-use per player, not globally.
    """

    code: str
    template_id: str
    expires_at: datetime
    claimed_by: frozenset[str] = field(default_factory=frozenset)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def claimed_by_player(self, player_id: str) -> bool:
        return player_id in self.claimed_by
