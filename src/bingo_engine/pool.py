"""The master draw sequence of a match."""

from __future__ import annotations

from typing import FrozenSet, List, Optional, Set, Tuple

from .errors import ExhaustedPool
from .rng import RandomSource


class DrawPool:
    """Numbers ``1..size`` drawn without replacement.

    ``drawn`` is the canonical call history: it only grows, and the union of
    ``drawn`` and ``remaining`` is always the full range.
    """

    def __init__(self, rng: RandomSource, size: int = 75):
        if size < 1:
            raise ValueError("pool size must be >= 1")
        self.size = size
        self._rng = rng
        self._remaining: List[int] = list(range(1, size + 1))
        self._drawn: List[int] = []
        self._drawn_set: Set[int] = set()

    def draw(self) -> int:
        if not self._remaining:
            raise ExhaustedPool(f"all {self.size} numbers have been drawn")
        idx = self._rng.randrange(len(self._remaining))
        # swap-remove keeps the pick O(1); order of _remaining is irrelevant
        last = self._remaining.pop()
        if idx < len(self._remaining):
            number, self._remaining[idx] = self._remaining[idx], last
        else:
            number = last
        self._drawn.append(number)
        self._drawn_set.add(number)
        return number

    def is_called(self, number: int) -> bool:
        return number in self._drawn_set

    @property
    def current(self) -> Optional[int]:
        return self._drawn[-1] if self._drawn else None

    @property
    def drawn(self) -> Tuple[int, ...]:
        return tuple(self._drawn)

    @property
    def remaining(self) -> FrozenSet[int]:
        return frozenset(self._remaining)

    @property
    def exhausted(self) -> bool:
        return not self._remaining

    def __len__(self) -> int:
        return len(self._drawn)
