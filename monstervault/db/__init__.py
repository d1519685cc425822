from monstervault.db.atomic import run_atomic
from monstervault.db.database import get_session, get_session_factory, init_db
from monstervault.db.operations import (
    claim_code_to_model,
    gift_to_model,
    instance_to_model,
    load_player,
    player_to_model,
)

__all__ = [
    "claim_code_to_model",
    "get_session",
    "get_session_factory",
    "gift_to_model",
    "init_db",
    "instance_to_model",
    "load_player",
    "player_to_model",
    "run_atomic",
]
