"""
Crystal Accrual: turn reported presence time into currency.

Callers report the player's cumulative presence hours. Each accrual pays
for the hours between the stored checkpoint and the reported total, then
moves the checkpoint forward by the hours it paid for. A fractional hour
that does not earn a whole crystal stays unpaid and carries into the next
call.

Attempts are rate limited per player: within the cooldown a second attempt
is refused and writes nothing.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.config import settings
from monstervault.db.atomic import run_atomic
from monstervault.db.operations import as_utc, require_player_record, touch_player
from monstervault.models.failure import InvalidInputError, ThrottledError
from monstervault.models.player import AccrualResult

logger = logging.getLogger(__name__)

# Absorbs float error such as 2.9999999999 hours meaning 3
_FLOOR_EPSILON = 1e-9

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class PresenceSession:
    """One tracked presence interval. An open session has no end."""

    begin_at: datetime
    end_at: datetime | None = None


def presence_hours(
    sessions: Iterable[PresenceSession],
    now: datetime | None = None,
    since: datetime | None = None,
) -> float:
    """
    Sum presence hours across sessions.

    Open sessions count up to `now`. With `since`, only time after it counts.
    """
    now = as_utc(now) or datetime.now(UTC)
    since = as_utc(since)
    total_seconds = 0.0
    for presence in sessions:
        begin = as_utc(presence.begin_at)
        end = as_utc(presence.end_at) or now
        if begin is None:
            continue
        if since is not None and since > begin:
            begin = since
        if end > begin:
            total_seconds += (end - begin).total_seconds()
    return total_seconds / SECONDS_PER_HOUR


class CrystalAccrualEngine:
    """Applies incremental crystal rewards, one serialized step per player."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        reward_rate: float | None = None,
        cooldown_seconds: int | None = None,
    ):
        self.session_factory = session_factory
        self.reward_rate = reward_rate if reward_rate is not None else settings.crystal_reward_rate
        self.cooldown_seconds = (
            cooldown_seconds
            if cooldown_seconds is not None
            else settings.crystal_accrual_cooldown_seconds
        )
        if self.reward_rate < 0:
            raise ValueError("reward_rate must be non-negative")

    def compute_reward(self, checkpoint: float, total_hours: float) -> tuple[int, float]:
        """
        Compute (earned, new_checkpoint) without touching the store.

        The checkpoint never moves backwards.
        """
        gained = total_hours - checkpoint
        if gained <= 0:
            return 0, max(checkpoint, total_hours)

        if self.reward_rate == 0:
            return 0, total_hours

        earned = math.floor(gained * self.reward_rate + _FLOOR_EPSILON)
        paid_hours = earned / self.reward_rate
        return earned, min(total_hours, checkpoint + paid_hours)

    async def accrue(
        self,
        player_id: str,
        total_elapsed_hours: float,
        now: datetime | None = None,
    ) -> AccrualResult:
        """
        Pay out crystals for presence time since the last checkpoint.

        Raises:
            InvalidInputError: If the reported hours are negative or not finite
            NotFoundError: If the player does not exist
            ThrottledError: If the previous attempt was within the cooldown
        """
        if not math.isfinite(total_elapsed_hours) or total_elapsed_hours < 0:
            raise InvalidInputError(
                "Elapsed hours must be a non-negative number",
                detail=f"total_elapsed_hours={total_elapsed_hours}",
            )
        attempted_at = as_utc(now) or datetime.now(UTC)

        async def _step(session: AsyncSession) -> AccrualResult:
            player = await require_player_record(session, player_id, for_update=True)

            last_attempt = as_utc(player.last_accrual_at)
            if last_attempt is not None:
                elapsed = (attempted_at - last_attempt).total_seconds()
                if elapsed < self.cooldown_seconds:
                    remaining = min(self.cooldown_seconds, self.cooldown_seconds - elapsed)
                    raise ThrottledError(max(1, math.ceil(remaining)))

            earned, checkpoint = self.compute_reward(
                float(player.last_accrual_checkpoint or 0.0), total_elapsed_hours
            )
            player.crystals = (player.crystals or 0) + earned
            player.last_accrual_checkpoint = checkpoint
            player.last_accrual_at = attempted_at
            touch_player(player)
            await session.flush()

            return AccrualResult(
                earned=earned,
                total_balance=player.crystals,
                checkpoint=checkpoint,
            )

        result = await run_atomic(self.session_factory, _step, operation="accrue")
        logger.info(
            "CRYSTALS_ACCRUED: player=%s earned=%d balance=%d checkpoint=%.4f",
            player_id,
            result.earned,
            result.total_balance,
            result.checkpoint,
        )
        return result
