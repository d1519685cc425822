"""
Instance id sources.

Instance ids are never reused. Production uses random UUIDs; tests inject
a sequential generator to get predictable ids.
"""

import itertools
import uuid
from typing import Protocol


class InstanceIdGenerator(Protocol):
    def __call__(self) -> str: ...


class UuidInstanceIds:
    """Collision-resistant ids from uuid4."""

    def __call__(self) -> str:
        return uuid.uuid4().hex


class SequentialInstanceIds:
    """Deterministic ids: `<prefix>-1`, `<prefix>-2`, ..."""

    def __init__(self, prefix: str = "mon"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"
