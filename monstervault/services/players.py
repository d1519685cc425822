"""
Player registry: first-login creation, profile reads and name lookup.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.config import settings
from monstervault.db.atomic import run_atomic
from monstervault.db.operations import (
    as_utc,
    create_player_record,
    find_player_by_name,
    get_player_record,
    load_player,
    touch_player,
)
from monstervault.models.failure import InvalidInputError
from monstervault.models.monster import InboxReason
from monstervault.models.player import Player
from monstervault.services.instance_ids import InstanceIdGenerator
from monstervault.services.inventory_ledger import InventoryLedger
from monstervault.services.monster_catalog import MonsterCatalog

logger = logging.getLogger(__name__)


class PlayerService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: InventoryLedger,
        catalog: MonsterCatalog,
        new_instance_id: InstanceIdGenerator,
        welcome_monster_count: int | None = None,
    ):
        self.session_factory = session_factory
        self.ledger = ledger
        self.catalog = catalog
        self.new_instance_id = new_instance_id
        self.welcome_monster_count = (
            welcome_monster_count
            if welcome_monster_count is not None
            else settings.welcome_monster_count
        )

    async def register(
        self, player_id: str, name: str, now: datetime | None = None
    ) -> tuple[Player, bool]:
        """
        Get or create a player on login.

        A new player gets welcome monsters in their inbox in the same
        transaction that creates them. Two concurrent first logins race on
        the primary key; the loser retries and finds the record.

        Returns:
            Tuple of (player, created) where created is True if new.
        """
        if not player_id or not player_id.strip():
            raise InvalidInputError("Player id cannot be empty")
        if not name or not name.strip():
            raise InvalidInputError("Player name cannot be empty")
        now = as_utc(now) or datetime.now(UTC)

        async def _step(session: AsyncSession) -> tuple[Player, bool]:
            existing = await get_player_record(session, player_id, for_update=True)
            if existing is not None:
                if existing.name != name:
                    existing.name = name
                    touch_player(existing)
                    await session.flush()
                return await load_player(session, player_id), False

            create_player_record(session, player_id, name)
            await session.flush()
            for _ in range(self.welcome_monster_count):
                template = self.catalog.random_by_weighted_rarity()
                minted = template.mint(self.new_instance_id(), InboxReason.WELCOME, now)
                await self.ledger.deposit_to_inbox(session, player_id, minted)
            return await load_player(session, player_id), True

        player, created = await run_atomic(self.session_factory, _step, operation="register")
        if created:
            logger.info("PLAYER_REGISTERED: player=%s name=%s", player_id, name)
        return player, created

    async def get(self, player_id: str) -> Player:
        """Raises NotFoundError if the player does not exist."""
        return await self.ledger.get_player(player_id)

    async def find_by_name(self, name: str) -> str | None:
        """Return the id of a player with this display name, if any."""
        async with self.session_factory() as session:
            player = await find_player_by_name(session, name)
            return player.player_id if player else None
