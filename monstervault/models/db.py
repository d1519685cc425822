"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

INBOX = "inbox"
COLLECTION = "collection"


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PlayerDB(Base):
    """
    A player's record.

    `revision` is an application-managed version counter: every UPDATE is
    issued with `WHERE revision = <value read>`, so two transactions that
    read the same revision cannot both commit.
    """

    __tablename__ = "players"

    player_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)

    monster_count: Mapped[int] = mapped_column(Integer, default=0)
    crystals: Mapped[int] = mapped_column(Integer, default=0)
    last_accrual_checkpoint: Mapped[float] = mapped_column(Float, default=0.0)
    last_accrual_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    granted_evaluations: Mapped[list[Any]] = mapped_column(JSON, default=list)

    # Placement counter for ordering instances within monsters/inbox
    next_slot: Mapped[int] = mapped_column(Integer, default=0)
    revision: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    instances: Mapped[list["MonsterInstanceDB"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )

    __mapper_args__ = {
        "version_id_col": revision,
        "version_id_generator": False,
    }

    def __repr__(self) -> str:
        return f"<PlayerDB(player_id={self.player_id}, revision={self.revision})>"


class MonsterInstanceDB(Base):
    """
    A minted monster instance.

    The instance id is the primary key, so an instance can only ever sit
    in one place: one owner, one location.
    """

    __tablename__ = "monster_instances"

    instance_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("players.player_id", ondelete="CASCADE"), index=True
    )
    location: Mapped[str] = mapped_column(String(16), index=True)
    slot: Mapped[int] = mapped_column(Integer, default=0)
    reason: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Stat snapshot taken at mint time
    template_id: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255))
    element: Mapped[str] = mapped_column(String(32))
    rarity: Mapped[str] = mapped_column(String(16))
    attack: Mapped[int] = mapped_column(Integer)
    defense: Mapped[int] = mapped_column(Integer)
    hp: Mapped[int] = mapped_column(Integer)
    minted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    owner: Mapped["PlayerDB"] = relationship(back_populates="instances")

    def __repr__(self) -> str:
        return (
            f"<MonsterInstanceDB(id={self.instance_id}, owner={self.owner_id}, "
            f"location={self.location})>"
        )


class ClaimCodeDB(Base):
    """A redemption code. Stored uppercase."""

    __tablename__ = "claim_codes"

    code: Mapped[str] = mapped_column(String(64), primary_key=True)
    template_id: Mapped[str] = mapped_column(String(64))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    redemptions: Mapped[list["ClaimCodeRedemptionDB"]] = relationship(
        back_populates="claim_code", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ClaimCodeDB(code={self.code}, template={self.template_id})>"


class ClaimCodeRedemptionDB(Base):
    """One player's use of a claim code. At most one per (code, player)."""

    __tablename__ = "claim_code_redemptions"
    __table_args__ = (UniqueConstraint("code", "player_id", name="uq_code_player"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(
        String(64), ForeignKey("claim_codes.code", ondelete="CASCADE"), index=True
    )
    player_id: Mapped[str] = mapped_column(String(255), index=True)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    claim_code: Mapped["ClaimCodeDB"] = relationship(back_populates="redemptions")

    def __repr__(self) -> str:
        return f"<ClaimCodeRedemptionDB(code={self.code}, player={self.player_id})>"


class GiftDB(Base):
    """Audit record of a completed gift. Written once, never updated."""

    __tablename__ = "gifts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[str] = mapped_column(String(255), index=True)
    recipient_id: Mapped[str] = mapped_column(String(255), index=True)
    instance_id: Mapped[str] = mapped_column(String(64))
    template_id: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"<GiftDB(id={self.id}, {self.sender_id} -> {self.recipient_id})>"
