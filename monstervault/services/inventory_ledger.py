"""
Inventory Ledger: the only writer of a player's monsters and inbox.

Every mutation here:
- bumps the owning player's revision, so concurrent transactions on the
  same player serialize through the revision guard
- recomputes `monster_count` from the collection rows it just changed

Transaction-scoped primitives take an open session so that callers such
as the gift broker can compose several of them into one atomic step.
The public `claim_*` / `deposit` methods wrap a single primitive in its
own atomic step.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.db.atomic import run_atomic
from monstervault.db.operations import (
    add_instance_record,
    allocate_slot,
    count_collection,
    get_instance_record,
    instance_id_in_use,
    instance_to_model,
    list_instance_records,
    load_player,
    require_player_record,
    touch_player,
)
from monstervault.models.db import COLLECTION, INBOX, PlayerDB
from monstervault.models.failure import InvalidInputError, NotFoundError, NotOwnedError
from monstervault.models.monster import MonsterInstance
from monstervault.models.player import Player

logger = logging.getLogger(__name__)


async def _refresh_monster_count(session: AsyncSession, player: PlayerDB) -> None:
    player.monster_count = await count_collection(session, player.player_id)


class InventoryLedger:
    """Atomic ownership operations over players' monsters and inboxes."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # --- Transaction-scoped primitives ---

    async def promote_one(self, session: AsyncSession, player_id: str, instance_id: str) -> None:
        """
        Move one instance from the inbox to the collection.

        Raises:
            NotFoundError: If the player is absent or the instance is not pending
        """
        player = await require_player_record(session, player_id, for_update=True)
        row = await get_instance_record(session, player_id, instance_id, INBOX)
        if row is None:
            raise NotFoundError("inbox monster", instance_id)

        row.location = COLLECTION
        row.reason = None
        row.slot = allocate_slot(player)
        touch_player(player)
        await session.flush()
        await _refresh_monster_count(session, player)

    async def promote_all(self, session: AsyncSession, player_id: str) -> int:
        """
        Move every pending instance to the collection, keeping inbox order.

        Returns the number of instances promoted; zero is not an error.
        Instances deposited after this transaction's read stay pending.
        """
        player = await require_player_record(session, player_id, for_update=True)
        pending = await list_instance_records(session, player_id, INBOX)
        if not pending:
            return 0

        for row in pending:
            row.location = COLLECTION
            row.reason = None
            row.slot = allocate_slot(player)
        touch_player(player)
        await session.flush()
        await _refresh_monster_count(session, player)
        return len(pending)

    async def deposit_to_inbox(
        self, session: AsyncSession, player_id: str, instance: MonsterInstance
    ) -> MonsterInstance:
        """
        Append an instance to a player's inbox.

        Instance ids are global: an id already held by anyone, in an inbox
        or a collection, is refused rather than left to the primary key.

        Raises:
            NotFoundError: If the target player does not exist
            InvalidInputError: If the instance id is already in use
        """
        player = await require_player_record(session, player_id, for_update=True)
        if await instance_id_in_use(session, instance.instance_id):
            raise InvalidInputError(
                "Monster instance id already in use.",
                detail=f"instance={instance.instance_id}",
            )
        row = add_instance_record(session, player, instance, INBOX)
        touch_player(player)
        await session.flush()
        return instance_to_model(row)

    async def remove_from_collection_if_owned(
        self, session: AsyncSession, player_id: str, instance_id: str
    ) -> MonsterInstance:
        """
        Check that an instance is in the collection and remove it.

        Returns the removed instance (reason cleared).

        Raises:
            NotFoundError: If the player does not exist
            NotOwnedError: If the instance is not in the player's collection
        """
        player = await require_player_record(session, player_id, for_update=True)
        row = await get_instance_record(session, player_id, instance_id, COLLECTION)
        if row is None:
            raise NotOwnedError(player_id, instance_id)

        removed = instance_to_model(row)
        await session.delete(row)
        touch_player(player)
        # Flush the DELETE now so a re-insert of the same id later in this
        # transaction is ordered after it
        await session.flush()
        await _refresh_monster_count(session, player)
        return removed

    # --- Atomic operations ---

    async def claim_one(self, player_id: str, instance_id: str) -> None:
        """Promote one pending instance in its own atomic step."""

        async def _step(session: AsyncSession) -> None:
            await self.promote_one(session, player_id, instance_id)

        await run_atomic(self.session_factory, _step, operation="claim_one")
        logger.info("INBOX_CLAIM_ONE: player=%s instance=%s", player_id, instance_id)

    async def claim_all(self, player_id: str) -> int:
        """Promote every pending instance in its own atomic step."""

        async def _step(session: AsyncSession) -> int:
            return await self.promote_all(session, player_id)

        promoted = await run_atomic(self.session_factory, _step, operation="claim_all")
        logger.info("INBOX_CLAIM_ALL: player=%s promoted=%d", player_id, promoted)
        return promoted

    async def deposit(self, player_id: str, instance: MonsterInstance) -> MonsterInstance:
        """Deposit one instance into a player's inbox in its own atomic step."""

        async def _step(session: AsyncSession) -> MonsterInstance:
            return await self.deposit_to_inbox(session, player_id, instance)

        return await run_atomic(self.session_factory, _step, operation="deposit")

    async def get_player(self, player_id: str) -> Player:
        """Read a consistent snapshot of a player's inventory."""
        async with self.session_factory() as session:
            return await load_player(session, player_id)
