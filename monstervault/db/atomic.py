"""
Serializable read-modify-write steps against the store.

`run_atomic` runs a callback inside one transaction and retries it from
scratch when a concurrent writer got there first. Conflicts show up as:

- StaleDataError: a revision-guarded UPDATE matched no row
- IntegrityError: a primary key or unique constraint lost a race
- OperationalError: lock timeout, deadlock, serialization failure

Business preconditions (KnownError) are never retried.

Every IntegrityError is treated as a race. Callbacks check their own
keys (player id, claim code, code and player pair, instance id) before
writing, so on the retry the re-read finds the winner and ends in a
KnownError. A violation no re-read can see would exhaust the attempts
and surface as a TransientError.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from monstervault.config import settings
from monstervault.models.failure import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (StaleDataError, IntegrityError, OperationalError)


async def run_atomic(
    session_factory: async_sessionmaker[AsyncSession],
    fn: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation: str = "atomic",
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """
    Run `fn` in a single transaction, retrying on write conflicts.

    Each attempt gets a fresh session, so nothing read by a failed attempt
    leaks into the next one.

    Args:
        session_factory: Factory producing sessions bound to the store
        fn: Reads and conditionally writes records through the session
        operation: Name used in logs and in the TransientError
        max_attempts: Attempts before giving up (defaults to settings)
        backoff_seconds: Base delay, doubled per attempt, with jitter

    Returns:
        Whatever `fn` returned on the committed attempt

    Raises:
        TransientError: If every attempt conflicted
        KnownError: Propagated from `fn` unchanged
    """
    attempts = max_attempts if max_attempts is not None else settings.transaction_max_attempts
    base_delay = (
        backoff_seconds if backoff_seconds is not None else settings.transaction_backoff_seconds
    )

    for attempt in range(1, attempts + 1):
        try:
            async with session_factory() as session:
                async with session.begin():
                    return await fn(session)
        except RETRYABLE_ERRORS as e:
            if attempt == attempts:
                logger.error(
                    "ATOMIC_RETRIES_EXHAUSTED: operation=%s attempts=%d error=%s",
                    operation,
                    attempts,
                    type(e).__name__,
                )
                raise TransientError(operation, attempts) from e

            delay = base_delay * (2 ** (attempt - 1)) * (1 + random.random())
            logger.warning(
                "ATOMIC_CONFLICT: operation=%s attempt=%d error=%s retry_in=%.3fs",
                operation,
                attempt,
                type(e).__name__,
                delay,
            )
            await asyncio.sleep(delay)

    # Unreachable with attempts >= 1
    raise TransientError(operation, attempts)
