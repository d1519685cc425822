import random
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.api.dependencies import get_catalog, get_instance_id_generator
from monstervault.config import settings
from monstervault.db.database import (
    build_engine,
    build_session_factory,
    drop_db,
    get_session,
    get_session_factory,
    init_db,
)
from monstervault.main import app
from monstervault.models.monster import InboxReason
from monstervault.services.claim_codes import ClaimCodeRegistry
from monstervault.services.crystal_accrual import CrystalAccrualEngine
from monstervault.services.gift_broker import GiftBroker
from monstervault.services.instance_ids import SequentialInstanceIds
from monstervault.services.inventory_ledger import InventoryLedger
from monstervault.services.monster_catalog import MonsterCatalog, build_templates
from monstervault.services.players import PlayerService
from monstervault.services.reward_grants import RewardGrantOrchestrator

NOW = datetime(2025, 11, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    """Concurrency tests contend on one SQLite file; retry often and quickly."""
    monkeypatch.setattr(settings, "transaction_max_attempts", 40)
    monkeypatch.setattr(settings, "transaction_backoff_seconds", 0.002)


@pytest.fixture
async def async_engine(tmp_path):
    """Create a file-backed SQLite engine so each session gets its own connection."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}")
    await init_db(engine)
    yield engine
    await drop_db(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(async_engine)


@pytest.fixture
def catalog() -> MonsterCatalog:
    return MonsterCatalog(build_templates(), rng=random.Random(42))


@pytest.fixture
def instance_ids() -> SequentialInstanceIds:
    return SequentialInstanceIds("mon")


@pytest.fixture
def ledger(session_factory) -> InventoryLedger:
    return InventoryLedger(session_factory)


@pytest.fixture
def registry(session_factory) -> ClaimCodeRegistry:
    return ClaimCodeRegistry(session_factory)


@pytest.fixture
def broker(session_factory, ledger) -> GiftBroker:
    return GiftBroker(session_factory, ledger)


@pytest.fixture
def accrual(session_factory) -> CrystalAccrualEngine:
    return CrystalAccrualEngine(session_factory, reward_rate=1.0, cooldown_seconds=3600)


@pytest.fixture
def rewards(session_factory, ledger, registry, catalog, instance_ids) -> RewardGrantOrchestrator:
    return RewardGrantOrchestrator(session_factory, ledger, registry, catalog, instance_ids)


@pytest.fixture
def players(session_factory, ledger, catalog, instance_ids) -> PlayerService:
    return PlayerService(session_factory, ledger, catalog, instance_ids, welcome_monster_count=1)


@pytest.fixture
def mint(catalog, instance_ids):
    """Mint a fresh instance of a template for direct ledger deposits."""

    def _mint(template_id: str = "fire-common", reason=None):
        return catalog.resolve(template_id).mint(instance_ids(), reason, NOW)

    return _mint


@pytest.fixture
async def client(session_factory, catalog, instance_ids):
    """Provide an async test client wired to the isolated store."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_instance_id_generator] = lambda: instance_ids

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_player(session_factory, ledger, catalog, instance_ids):
    """Register a player without welcome monsters."""
    service = PlayerService(session_factory, ledger, catalog, instance_ids, welcome_monster_count=0)

    async def _make(player_id: str, name: str | None = None):
        player, _ = await service.register(player_id, name or player_id, now=NOW)
        return player

    return _make


@pytest.fixture
def give_owned(ledger, mint):
    """Put a freshly minted monster straight into a player's collection."""
    async def _give(player_id: str, template_id: str = "fire-common"):
        monster = await ledger.deposit(player_id, mint(template_id, InboxReason.EVAL))
        await ledger.claim_one(player_id, monster.instance_id)
        return monster

    return _give
