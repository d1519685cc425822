"""
FastAPI dependencies that assemble the inventory services.

Tests override `get_session_factory`, `get_catalog` and
`get_instance_id_generator` to run against an isolated store with
predictable randomness.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.db.database import get_session_factory
from monstervault.services.claim_codes import ClaimCodeRegistry
from monstervault.services.crystal_accrual import CrystalAccrualEngine
from monstervault.services.gift_broker import GiftBroker
from monstervault.services.instance_ids import InstanceIdGenerator, UuidInstanceIds
from monstervault.services.inventory_ledger import InventoryLedger
from monstervault.services.monster_catalog import MonsterCatalog, get_default_catalog
from monstervault.services.players import PlayerService
from monstervault.services.reward_grants import RewardGrantOrchestrator

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_catalog() -> MonsterCatalog:
    return get_default_catalog()


@lru_cache(maxsize=1)
def get_instance_id_generator() -> InstanceIdGenerator:
    return UuidInstanceIds()


Catalog = Annotated[MonsterCatalog, Depends(get_catalog)]
IdGenerator = Annotated[InstanceIdGenerator, Depends(get_instance_id_generator)]


def get_ledger(session_factory: SessionFactory) -> InventoryLedger:
    return InventoryLedger(session_factory)


Ledger = Annotated[InventoryLedger, Depends(get_ledger)]


def get_registry(session_factory: SessionFactory) -> ClaimCodeRegistry:
    return ClaimCodeRegistry(session_factory)


def get_gift_broker(session_factory: SessionFactory, ledger: Ledger) -> GiftBroker:
    return GiftBroker(session_factory, ledger)


def get_accrual_engine(session_factory: SessionFactory) -> CrystalAccrualEngine:
    return CrystalAccrualEngine(session_factory)


def get_reward_orchestrator(
    session_factory: SessionFactory,
    ledger: Ledger,
    registry: Annotated[ClaimCodeRegistry, Depends(get_registry)],
    catalog: Catalog,
    new_instance_id: IdGenerator,
) -> RewardGrantOrchestrator:
    return RewardGrantOrchestrator(session_factory, ledger, registry, catalog, new_instance_id)


def get_player_service(
    session_factory: SessionFactory,
    ledger: Ledger,
    catalog: Catalog,
    new_instance_id: IdGenerator,
) -> PlayerService:
    return PlayerService(session_factory, ledger, catalog, new_instance_id)
