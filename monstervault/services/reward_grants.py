"""
Reward Grant Orchestrator: code redemption and login rewards end to end.

Code redemption runs validate -> resolve -> mint -> deposit -> commit.
The commit (recording the player in the code's claimed set) comes last
and is best effort: once the monster is in the inbox the player keeps it,
even if recording the claim fails. Under repeated commit failures a player
can therefore redeem the same code more than once; the registry itself
never records a player twice.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.db.atomic import run_atomic
from monstervault.db.operations import as_utc, require_player_record
from monstervault.models.failure import KnownError
from monstervault.models.monster import InboxReason, MonsterInstance
from monstervault.services.claim_codes import ClaimCodeRegistry
from monstervault.services.instance_ids import InstanceIdGenerator
from monstervault.services.inventory_ledger import InventoryLedger
from monstervault.services.monster_catalog import MonsterCatalog

logger = logging.getLogger(__name__)


class RewardGrantOrchestrator:
    """Mints monsters for redeemed codes and newly completed evaluations."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: InventoryLedger,
        registry: ClaimCodeRegistry,
        catalog: MonsterCatalog,
        new_instance_id: InstanceIdGenerator,
    ):
        self.session_factory = session_factory
        self.ledger = ledger
        self.registry = registry
        self.catalog = catalog
        self.new_instance_id = new_instance_id

    async def grant_from_code(
        self, player_id: str, code: str, now: datetime | None = None
    ) -> MonsterInstance:
        """
        Redeem a code for a player and return the minted monster.

        Raises:
            NotFoundError: If the code, its template or the player is unknown
            ExpiredError: If the code has expired
            AlreadyClaimedError: If the player already redeemed the code
        """
        now = as_utc(now) or datetime.now(UTC)
        claim_code = await self.registry.validate_for_player(code, player_id, now)
        template = self.catalog.resolve(claim_code.template_id)
        minted = template.mint(self.new_instance_id(), InboxReason.CODE, now)

        deposited = await self.ledger.deposit(player_id, minted)

        try:
            await self.registry.mark_claimed(claim_code.code, player_id, now)
        except Exception as e:
            # The player already has the monster; a bookkeeping failure
            # must not take it back
            kind = e.kind.value if isinstance(e, KnownError) else type(e).__name__
            logger.warning(
                "CODE_CLAIM_COMMIT_FAILED: code=%s player=%s instance=%s kind=%s",
                claim_code.code,
                player_id,
                deposited.instance_id,
                kind,
                exc_info=True,
            )
        else:
            logger.info(
                "CODE_REDEEMED: code=%s player=%s instance=%s",
                claim_code.code,
                player_id,
                deposited.instance_id,
            )

        return deposited

    async def grant_for_evaluations(
        self,
        player_id: str,
        evaluation_ids: Iterable[str | int],
        now: datetime | None = None,
    ) -> list[MonsterInstance]:
        """
        Grant one random monster per evaluation the player has not been paid for.

        The check against already-granted evaluations and the deposits happen
        in one atomic step, so replaying the same ids grants nothing.

        Raises:
            NotFoundError: If the player does not exist
        """
        now = as_utc(now) or datetime.now(UTC)
        requested: list[str] = []
        for evaluation_id in evaluation_ids:
            key = str(evaluation_id)
            if key not in requested:
                requested.append(key)

        async def _step(session: AsyncSession) -> list[MonsterInstance]:
            player = await require_player_record(session, player_id, for_update=True)
            already = {str(e) for e in (player.granted_evaluations or [])}
            fresh = [e for e in requested if e not in already]
            if not fresh:
                return []

            granted = []
            for _ in fresh:
                template = self.catalog.random_by_weighted_rarity()
                minted = template.mint(self.new_instance_id(), InboxReason.EVAL, now)
                granted.append(await self.ledger.deposit_to_inbox(session, player_id, minted))

            # Reassign rather than mutate so the JSON column change is tracked
            player.granted_evaluations = [*(player.granted_evaluations or []), *fresh]
            await session.flush()
            return granted

        granted = await run_atomic(self.session_factory, _step, operation="grant_for_evaluations")
        if granted:
            logger.info(
                "EVALUATION_REWARDS_GRANTED: player=%s count=%d",
                player_id,
                len(granted),
            )
        return granted
