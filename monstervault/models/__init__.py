from monstervault.models.claim_code import ClaimCode
from monstervault.models.failure import (
    STANDARD_MESSAGES,
    STANDARD_SUGGESTIONS,
    AlreadyClaimedError,
    ApiResponse,
    ExpiredError,
    FailureDetail,
    FailureKind,
    InvalidInputError,
    KnownError,
    NotFoundError,
    NotOwnedError,
    OutcomeType,
    ThrottledError,
    TransientError,
    create_unknown_failure,
    finalize_response,
)
from monstervault.models.monster import InboxReason, MonsterInstance, MonsterTemplate, Rarity
from monstervault.models.player import AccrualResult, GiftRecord, Player

__all__ = [
    "STANDARD_MESSAGES",
    "STANDARD_SUGGESTIONS",
    "AccrualResult",
    "AlreadyClaimedError",
    "ApiResponse",
    "ClaimCode",
    "ExpiredError",
    "FailureDetail",
    "FailureKind",
    "GiftRecord",
    "InboxReason",
    "InvalidInputError",
    "KnownError",
    "MonsterInstance",
    "MonsterTemplate",
    "NotFoundError",
    "NotOwnedError",
    "OutcomeType",
    "Player",
    "Rarity",
    "ThrottledError",
    "TransientError",
    "create_unknown_failure",
    "finalize_response",
]
