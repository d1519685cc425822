"""
Claim Code Registry: creation, lookup and single-use-per-player claims.

Per (code, player) the state machine is Unclaimed -> Claimed, with no way
back. Validation and claiming are separate calls: validation is a plain
read, claiming re-checks inside its own atomic step because a concurrent
redemption may have landed in between. The (code, player) unique
constraint backs the re-check at the storage level.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.db.atomic import run_atomic
from monstervault.db.operations import as_utc, claim_code_to_model, get_claim_code_record
from monstervault.models.claim_code import ClaimCode
from monstervault.models.db import ClaimCodeDB, ClaimCodeRedemptionDB
from monstervault.models.failure import (
    AlreadyClaimedError,
    ExpiredError,
    InvalidInputError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    """Codes are case-insensitive; they are stored and looked up uppercase."""
    normalized = (code or "").strip().upper()
    if not normalized:
        raise InvalidInputError("Code cannot be empty")
    return normalized


class ClaimCodeRegistry:
    """Owns every write to claim codes and their redemptions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def lookup(self, code: str) -> ClaimCode:
        """
        Fetch a code case-insensitively.

        Raises:
            NotFoundError: If no such code exists
        """
        normalized = normalize_code(code)
        async with self.session_factory() as session:
            row = await get_claim_code_record(session, normalized)
            if row is None:
                raise NotFoundError("code", normalized)
            return claim_code_to_model(row)

    async def validate_for_player(
        self, code: str, player_id: str, now: datetime | None = None
    ) -> ClaimCode:
        """
        Check that `player_id` may redeem `code` at `now`. Does not write.

        Raises:
            NotFoundError: If no such code exists
            ExpiredError: If now is past the code's expiry
            AlreadyClaimedError: If the player already redeemed it
        """
        now = as_utc(now) or datetime.now(UTC)
        claim_code = await self.lookup(code)
        if claim_code.is_expired(now):
            raise ExpiredError(claim_code.code)
        if claim_code.claimed_by_player(player_id):
            raise AlreadyClaimedError(claim_code.code, player_id)
        return claim_code

    async def mark_claimed(
        self, code: str, player_id: str, now: datetime | None = None
    ) -> ClaimCode:
        """
        Record that `player_id` used `code`, as one atomic check-then-append.

        Raises:
            NotFoundError: If the code no longer exists
            AlreadyClaimedError: If the player's claim is already recorded
        """
        normalized = normalize_code(code)
        claimed_at = as_utc(now) or datetime.now(UTC)

        async def _step(session: AsyncSession) -> ClaimCode:
            row = await get_claim_code_record(session, normalized)
            if row is None:
                raise NotFoundError("code", normalized)
            if any(r.player_id == player_id for r in row.redemptions):
                raise AlreadyClaimedError(normalized, player_id)

            row.redemptions.append(
                ClaimCodeRedemptionDB(player_id=player_id, claimed_at=claimed_at)
            )
            await session.flush()
            return claim_code_to_model(row)

        claim_code = await run_atomic(self.session_factory, _step, operation="mark_claimed")
        logger.info("CODE_MARKED_CLAIMED: code=%s player=%s", normalized, player_id)
        return claim_code

    async def create(
        self, code: str, template_id: str, expires_at: datetime
    ) -> tuple[ClaimCode, bool]:
        """
        Create a code unless it already exists.

        An existing code is returned untouched: its expiry and redemptions
        are never reset, so bootstrap can run repeatedly.

        Returns:
            Tuple of (code, created) where created is True if new.
        """
        normalized = normalize_code(code)
        expires_at = as_utc(expires_at) or expires_at

        async def _step(session: AsyncSession) -> tuple[ClaimCode, bool]:
            existing = await get_claim_code_record(session, normalized)
            if existing is not None:
                return claim_code_to_model(existing), False

            row = ClaimCodeDB(
                code=normalized,
                template_id=template_id,
                expires_at=expires_at,
                redemptions=[],
            )
            session.add(row)
            await session.flush()
            return claim_code_to_model(row), True

        claim_code, created = await run_atomic(
            self.session_factory, _step, operation="create_claim_code"
        )
        if created:
            logger.info(
                "CODE_CREATED: code=%s template=%s expires_at=%s",
                normalized,
                template_id,
                expires_at.isoformat(),
            )
        return claim_code, created
