"""
Database record operations.

Provides async helpers for reading and writing player, instance, claim
code and gift records inside an open transaction, and the conversions from
rows to domain models. Conversions are the single place where stored
values are normalized (defaults, UTC timestamps, ordering).
"""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from monstervault.models.claim_code import ClaimCode
from monstervault.models.db import (
    COLLECTION,
    INBOX,
    ClaimCodeDB,
    GiftDB,
    MonsterInstanceDB,
    PlayerDB,
)
from monstervault.models.failure import NotFoundError
from monstervault.models.monster import InboxReason, MonsterInstance, Rarity
from monstervault.models.player import GiftRecord, Player


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps (SQLite drops tzinfo) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# --- Player Operations ---


async def get_player_record(
    session: AsyncSession, player_id: str, *, for_update: bool = False
) -> PlayerDB | None:
    """
    Get a player's record by id.

    With `for_update`, the row is locked where the backend supports it
    (PostgreSQL); the revision guard covers the rest.
    """
    stmt = select(PlayerDB).where(PlayerDB.player_id == player_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def require_player_record(
    session: AsyncSession, player_id: str, *, for_update: bool = False
) -> PlayerDB:
    """Get a player's record, raising NotFoundError if absent."""
    player = await get_player_record(session, player_id, for_update=for_update)
    if player is None:
        raise NotFoundError("player", player_id)
    return player


async def lock_players(session: AsyncSession, player_ids: list[str]) -> dict[str, PlayerDB]:
    """
    Load several players for update in a stable order.

    Sorting by id means two transactions touching the same pair always
    lock them in the same order.
    """
    players: dict[str, PlayerDB] = {}
    for player_id in sorted(set(player_ids)):
        players[player_id] = await require_player_record(session, player_id, for_update=True)
    return players


def create_player_record(session: AsyncSession, player_id: str, name: str) -> PlayerDB:
    """
    Stage a new player record.

    A concurrent insert of the same id surfaces as IntegrityError at flush.
    """
    player = PlayerDB(
        player_id=player_id,
        name=name,
        monster_count=0,
        crystals=0,
        last_accrual_checkpoint=0.0,
        last_accrual_at=None,
        granted_evaluations=[],
        next_slot=0,
        revision=1,
    )
    session.add(player)
    return player


def touch_player(player: PlayerDB) -> None:
    """Bump the revision so the pending UPDATE is guarded and always emitted."""
    player.revision = player.revision + 1


def allocate_slot(player: PlayerDB) -> int:
    """Reserve the next ordering slot for an instance placed with this player."""
    slot = player.next_slot
    player.next_slot = slot + 1
    return slot


async def find_player_by_name(session: AsyncSession, name: str) -> PlayerDB | None:
    """Find the first player with the given display name."""
    result = await session.execute(
        select(PlayerDB).where(PlayerDB.name == name).order_by(PlayerDB.player_id).limit(1)
    )
    return result.scalar_one_or_none()


# --- Instance Operations ---


async def get_instance_record(
    session: AsyncSession, owner_id: str, instance_id: str, location: str
) -> MonsterInstanceDB | None:
    """Get an instance only if it is held by `owner_id` at `location`."""
    result = await session.execute(
        select(MonsterInstanceDB).where(
            MonsterInstanceDB.instance_id == instance_id,
            MonsterInstanceDB.owner_id == owner_id,
            MonsterInstanceDB.location == location,
        )
    )
    return result.scalar_one_or_none()


async def instance_id_in_use(session: AsyncSession, instance_id: str) -> bool:
    """Whether any player holds an instance with this id, anywhere."""
    result = await session.execute(
        select(MonsterInstanceDB.instance_id).where(MonsterInstanceDB.instance_id == instance_id)
    )
    return result.first() is not None


async def list_instance_records(
    session: AsyncSession, owner_id: str, location: str
) -> list[MonsterInstanceDB]:
    """List a player's instances at one location, in placement order."""
    result = await session.execute(
        select(MonsterInstanceDB)
        .where(
            MonsterInstanceDB.owner_id == owner_id,
            MonsterInstanceDB.location == location,
        )
        .order_by(MonsterInstanceDB.slot, MonsterInstanceDB.instance_id)
    )
    return list(result.scalars().all())


async def count_collection(session: AsyncSession, owner_id: str) -> int:
    """Count instances in a player's permanent collection."""
    result = await session.execute(
        select(func.count())
        .select_from(MonsterInstanceDB)
        .where(
            MonsterInstanceDB.owner_id == owner_id,
            MonsterInstanceDB.location == COLLECTION,
        )
    )
    return int(result.scalar_one())


def add_instance_record(
    session: AsyncSession,
    owner: PlayerDB,
    instance: MonsterInstance,
    location: str,
) -> MonsterInstanceDB:
    """Stage a new instance row for `owner` at `location`."""
    row = MonsterInstanceDB(
        instance_id=instance.instance_id,
        owner_id=owner.player_id,
        location=location,
        slot=allocate_slot(owner),
        reason=instance.reason.value if instance.reason and location == INBOX else None,
        template_id=instance.template_id,
        name=instance.name,
        element=instance.element,
        rarity=instance.rarity.value,
        attack=instance.attack,
        defense=instance.defense,
        hp=instance.hp,
        minted_at=instance.minted_at,
    )
    session.add(row)
    return row


def instance_to_model(row: MonsterInstanceDB) -> MonsterInstance:
    """Convert a database instance to a domain model."""
    return MonsterInstance(
        instance_id=row.instance_id,
        template_id=row.template_id,
        name=row.name,
        element=row.element,
        rarity=Rarity(row.rarity),
        attack=row.attack,
        defense=row.defense,
        hp=row.hp,
        reason=InboxReason(row.reason) if row.reason else None,
        minted_at=as_utc(row.minted_at),
    )


def player_to_model(
    player: PlayerDB,
    monsters: list[MonsterInstanceDB],
    inbox: list[MonsterInstanceDB],
) -> Player:
    """Convert a database player and its instances to a domain model."""
    return Player(
        player_id=player.player_id,
        name=player.name,
        monsters=[instance_to_model(row) for row in monsters],
        inbox=[instance_to_model(row) for row in inbox],
        monster_count=player.monster_count or 0,
        granted_evaluations={str(e) for e in (player.granted_evaluations or [])},
        crystals=player.crystals or 0,
        last_accrual_checkpoint=float(player.last_accrual_checkpoint or 0.0),
        last_accrual_at=as_utc(player.last_accrual_at),
    )


async def load_player(session: AsyncSession, player_id: str) -> Player:
    """Load a full player snapshot. Raises NotFoundError if absent."""
    player = await require_player_record(session, player_id)
    monsters = await list_instance_records(session, player_id, COLLECTION)
    inbox = await list_instance_records(session, player_id, INBOX)
    return player_to_model(player, monsters, inbox)


# --- Claim Code Operations ---


async def get_claim_code_record(session: AsyncSession, code: str) -> ClaimCodeDB | None:
    """Get a claim code with its redemptions. `code` must already be normalized."""
    result = await session.execute(
        select(ClaimCodeDB)
        .where(ClaimCodeDB.code == code)
        .options(selectinload(ClaimCodeDB.redemptions))
    )
    return result.scalar_one_or_none()


def claim_code_to_model(row: ClaimCodeDB) -> ClaimCode:
    """Convert a database claim code to a domain model."""
    expires_at = as_utc(row.expires_at)
    if expires_at is None:
        raise RuntimeError(f"Claim code {row.code} has no expiry")
    return ClaimCode(
        code=row.code,
        template_id=row.template_id,
        expires_at=expires_at,
        claimed_by=frozenset(r.player_id for r in row.redemptions),
    )


# --- Gift Operations ---


async def recent_gifts_for(session: AsyncSession, recipient_id: str, limit: int) -> list[GiftDB]:
    """Get the most recent gifts received by a player, newest first."""
    result = await session.execute(
        select(GiftDB)
        .where(GiftDB.recipient_id == recipient_id)
        .order_by(GiftDB.created_at.desc(), GiftDB.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_gift_record(session: AsyncSession, gift_id: int) -> GiftDB | None:
    result = await session.execute(select(GiftDB).where(GiftDB.id == gift_id))
    return result.scalar_one_or_none()


def gift_to_model(row: GiftDB) -> GiftRecord:
    """Convert a database gift to a domain model."""
    created_at = as_utc(row.created_at)
    if created_at is None:
        raise RuntimeError(f"Gift {row.id} has no timestamp")
    return GiftRecord(
        gift_id=row.id,
        sender_id=row.sender_id,
        recipient_id=row.recipient_id,
        instance_id=row.instance_id,
        template_id=row.template_id,
        created_at=created_at,
    )
