"""
Gift Broker: move one owned monster into another player's inbox.

The removal from the sender, the deposit to the recipient and the audit
record are one transaction over both player rows. Either all of it
commits or none of it does: the instance is never in both places and
never in neither.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.config import settings
from monstervault.db.atomic import run_atomic
from monstervault.db.operations import (
    as_utc,
    get_gift_record,
    get_player_record,
    gift_to_model,
    lock_players,
    recent_gifts_for,
)
from monstervault.models.db import GiftDB
from monstervault.models.failure import InvalidInputError, NotFoundError
from monstervault.models.monster import InboxReason
from monstervault.models.player import GiftRecord
from monstervault.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


class GiftBroker:
    """Transfers single instances between players, exactly once."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: InventoryLedger,
    ):
        self.session_factory = session_factory
        self.ledger = ledger

    async def gift(
        self,
        sender_id: str,
        recipient_id: str,
        instance_id: str,
        now: datetime | None = None,
    ) -> GiftRecord:
        """
        Gift one monster from the sender's collection to the recipient's inbox.

        Raises:
            InvalidInputError: If sender and recipient are the same player
            NotFoundError: If either player does not exist
            NotOwnedError: If the sender does not hold the instance
        """
        if not instance_id:
            raise InvalidInputError("Missing instance id")
        if sender_id == recipient_id:
            raise InvalidInputError("Cannot gift a monster to yourself")
        sent_at = as_utc(now) or datetime.now(UTC)

        async def _step(session: AsyncSession) -> GiftRecord:
            # Both rows are loaded up front, in id order, before any write
            await lock_players(session, [sender_id, recipient_id])

            monster = await self.ledger.remove_from_collection_if_owned(
                session, sender_id, instance_id
            )
            await self.ledger.deposit_to_inbox(
                session, recipient_id, monster.with_reason(InboxReason.GIFT)
            )

            record = GiftDB(
                sender_id=sender_id,
                recipient_id=recipient_id,
                instance_id=monster.instance_id,
                template_id=monster.template_id,
                created_at=sent_at,
            )
            session.add(record)
            await session.flush()
            return gift_to_model(record)

        gift = await run_atomic(self.session_factory, _step, operation="gift")
        logger.info(
            "GIFT_COMPLETE: sender=%s recipient=%s instance=%s",
            sender_id,
            recipient_id,
            instance_id,
        )
        return gift

    async def recent_gifts(self, recipient_id: str, limit: int | None = None) -> list[GiftRecord]:
        """
        List the most recent gifts a player received, newest first.

        Raises:
            NotFoundError: If the player does not exist
        """
        limit = limit if limit is not None else settings.recent_gifts_limit
        async with self.session_factory() as session:
            if await get_player_record(session, recipient_id) is None:
                raise NotFoundError("player", recipient_id)
            rows = await recent_gifts_for(session, recipient_id, limit)
            return [gift_to_model(row) for row in rows]

    async def dismiss(self, recipient_id: str, gift_id: int) -> None:
        """
        Remove a received gift from the recipient's gift list.

        Only the record goes; the gifted monster stays wherever it is now.

        Raises:
            NotFoundError: If no such gift was received by this player
        """

        async def _step(session: AsyncSession) -> None:
            record = await get_gift_record(session, gift_id)
            if record is None or record.recipient_id != recipient_id:
                raise NotFoundError("gift", str(gift_id))
            await session.delete(record)
            await session.flush()

        await run_atomic(self.session_factory, _step, operation="dismiss_gift")
        logger.info("GIFT_DISMISSED: recipient=%s gift=%s", recipient_id, gift_id)
