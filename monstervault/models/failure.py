"""
Failure envelope for the inventory API.

An inventory call either succeeds or ends in one failure from a small,
closed set. Outcomes:
- Refusal: the call may succeed later (cooldown not yet elapsed)
- KnownFailure: a precondition did not hold (not found, not owned,
  expired, already claimed) or the store stayed contended after retries
- UnknownFailure: anything else; the caller only sees a fixed message

Every failure body a client sees is an `ApiResponse` that went through
`finalize_response()`.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """What went wrong, as reported to clients."""

    # Request shape
    INVALID_INPUT = "invalid_input"

    # Missing players, codes, templates or inbox entries
    NOT_FOUND = "not_found"

    # Business preconditions
    NOT_OWNED = "not_owned"
    EXPIRED = "expired"
    ALREADY_CLAIMED = "already_claimed"
    THROTTLED = "throttled"

    # Store contention that outlasted the retries
    TRANSIENT = "transient"

    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    SUCCESS = "success"
    REFUSAL = "refusal"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    kind: FailureKind = Field(..., description="Failure category")
    message: str = Field(..., description="Explanation safe to show a player")
    detail: str | None = Field(
        default=None,
        description="Identifiers involved, e.g. player=P1 instance=mon-3",
    )
    suggestion: str | None = Field(default=None, description="What the caller can do next")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned for every failed request."""

    outcome: OutcomeType = Field(..., description="Outcome class")
    data: T | None = Field(default=None, description="Payload, success only")
    failure: FailureDetail | None = Field(default=None, description="Set on every non-success")


# =============================================================================
# EXCEPTIONS
# =============================================================================


class KnownError(Exception):
    """
    A failure whose cause is known and can be explained to the caller.

    Services raise subclasses; the API layer renders them with
    `to_response()` and `status_code`.
    """

    outcome: OutcomeType = OutcomeType.KNOWN_FAILURE

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code

    def to_response(self) -> ApiResponse[Any]:
        """Render as a finalized envelope, with the outcome's default suggestion if none."""
        failure = FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion or STANDARD_SUGGESTIONS[self.outcome],
        )
        return finalize_response(ApiResponse[Any](outcome=self.outcome, failure=failure))



class InvalidInputError(KnownError):
    """Raised when a request carries malformed or out-of-range values."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            status_code=400,
        )


class NotFoundError(KnownError):
    """Raised when a player, code, template or inbox instance does not exist."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"{entity.capitalize()} not found.",
            detail=f"{entity}={identifier}",
            status_code=404,
        )


class NotOwnedError(KnownError):
    """Raised when a player does not hold an instance in their collection."""

    def __init__(self, player_id: str, instance_id: str):
        self.player_id = player_id
        self.instance_id = instance_id
        super().__init__(
            kind=FailureKind.NOT_OWNED,
            message="Monster not owned.",
            detail=f"player={player_id} instance={instance_id}",
            suggestion="Only monsters in your collection can be gifted.",
            status_code=409,
        )


class ExpiredError(KnownError):
    """Raised when a claim code is redeemed after its expiry."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(
            kind=FailureKind.EXPIRED,
            message="This code has expired.",
            detail=f"code={code}",
            status_code=410,
        )


class AlreadyClaimedError(KnownError):
    """Raised when a player redeems a code they have already used."""

    def __init__(self, code: str, player_id: str):
        self.code = code
        self.player_id = player_id
        super().__init__(
            kind=FailureKind.ALREADY_CLAIMED,
            message="You already used this code.",
            detail=f"code={code} player={player_id}",
            status_code=409,
        )


class ThrottledError(KnownError):
    """
    Raised when an operation is attempted before its cooldown has elapsed.

    Non-fatal: the caller may retry after `retry_after_seconds`.
    """

    outcome = OutcomeType.REFUSAL

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            kind=FailureKind.THROTTLED,
            message="Too soon. Please wait before refreshing again.",
            detail=f"retry_after_seconds={retry_after_seconds}",
            suggestion=f"Try again in {retry_after_seconds} seconds.",
            status_code=429,
        )


class TransientError(KnownError):
    """
    Raised when the backing store keeps conflicting or timing out.

    Every operation in the inventory core is safe to retry.
    """

    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(
            kind=FailureKind.TRANSIENT,
            message="The service is busy. Please retry.",
            detail=f"{operation} failed after {attempts} attempts",
            suggestion="Retrying the same request is safe.",
            status_code=503,
        )


# =============================================================================
# ENVELOPE FINALIZATION
# =============================================================================

STANDARD_MESSAGES: dict[OutcomeType, str] = {
    OutcomeType.REFUSAL: "Not right now.",
    OutcomeType.KNOWN_FAILURE: "The request could not be completed.",
    OutcomeType.UNKNOWN_FAILURE: "Something went wrong on our side.",
}

STANDARD_SUGGESTIONS: dict[OutcomeType, str] = {
    OutcomeType.REFUSAL: "Wait and try again.",
    OutcomeType.KNOWN_FAILURE: "Check the request and try again.",
    OutcomeType.UNKNOWN_FAILURE: "Try again later; report it if it keeps happening.",
}


def finalize_response(response: ApiResponse[Any]) -> ApiResponse[Any]:
    """
    Check an envelope's shape and return it unchanged.

    Raises:
        ValueError: If a success carries failure details, or a non-success lacks them
    """
    is_success = response.outcome == OutcomeType.SUCCESS
    if is_success and response.failure is not None:
        raise ValueError("success envelope carries failure details")
    if not is_success and response.failure is None:
        raise ValueError(f"{response.outcome.value} envelope has no failure details")

    return response


def create_unknown_failure(exception: Exception) -> ApiResponse[Any]:
    """
    Envelope for an unexpected exception.

    Only the exception type is exposed; its message may carry internals.
    """
    response: ApiResponse[Any] = ApiResponse(
        outcome=OutcomeType.UNKNOWN_FAILURE,
        failure=FailureDetail(
            kind=FailureKind.UNKNOWN,
            message=STANDARD_MESSAGES[OutcomeType.UNKNOWN_FAILURE],
            detail=type(exception).__name__,
            suggestion=STANDARD_SUGGESTIONS[OutcomeType.UNKNOWN_FAILURE],
        ),
    )
    return finalize_response(response)
