from monstervault.services.claim_codes import ClaimCodeRegistry, normalize_code
from monstervault.services.crystal_accrual import (
    CrystalAccrualEngine,
    PresenceSession,
    presence_hours,
)
from monstervault.services.gift_broker import GiftBroker
from monstervault.services.instance_ids import (
    InstanceIdGenerator,
    SequentialInstanceIds,
    UuidInstanceIds,
)
from monstervault.services.inventory_ledger import InventoryLedger
from monstervault.services.monster_catalog import (
    MonsterCatalog,
    build_templates,
    get_default_catalog,
    weighted_choice,
)
from monstervault.services.players import PlayerService
from monstervault.services.reward_grants import RewardGrantOrchestrator

__all__ = [
    "ClaimCodeRegistry",
    "CrystalAccrualEngine",
    "GiftBroker",
    "InstanceIdGenerator",
    "InventoryLedger",
    "MonsterCatalog",
    "PlayerService",
    "PresenceSession",
    "RewardGrantOrchestrator",
    "SequentialInstanceIds",
    "UuidInstanceIds",
    "build_templates",
    "get_default_catalog",
    "normalize_code",
    "presence_hours",
    "weighted_choice",
]
