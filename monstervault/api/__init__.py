from monstervault.api.codes import router as codes_router
from monstervault.api.crystals import router as crystals_router
from monstervault.api.gifts import router as gifts_router
from monstervault.api.health import router as health_router
from monstervault.api.inventory import router as inventory_router
from monstervault.api.players import router as players_router

__all__ = [
    "codes_router",
    "crystals_router",
    "gifts_router",
    "health_router",
    "inventory_router",
    "players_router",
]
