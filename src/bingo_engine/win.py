"""Win detection over per-card line counters.

Each tracked card keeps one counter per row, column and diagonal plus a total.
A mark or unmark touches at most four counters, and ``evaluate`` reads a fixed
number of them, so checking a card after every mark costs O(1) regardless of
how many cards are in play.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .card import Card, CardLayout

PATTERN_GROUPS = ("rows", "columns", "diagonals", "blackout")
DEFAULT_PATTERNS = ("rows", "columns", "diagonals")


@dataclass(frozen=True)
class LinePattern:
    kind: str
    index: int = 0

    def __str__(self) -> str:
        if self.kind == "blackout":
            return "blackout"
        return f"{self.kind}:{self.index}"

    @classmethod
    def parse(cls, text: str) -> "LinePattern":
        if text == "blackout":
            return BLACKOUT
        kind, _, idx = text.partition(":")
        if kind not in ("row", "column", "diagonal") or not idx.isdigit():
            raise ValueError(f"Unrecognised pattern: {text!r}")
        return cls(kind, int(idx))


def Row(index: int) -> LinePattern:
    return LinePattern("row", index)


def Column(index: int) -> LinePattern:
    return LinePattern("column", index)


def Diagonal(index: int) -> LinePattern:
    return LinePattern("diagonal", index)


BLACKOUT = LinePattern("blackout")


@dataclass(frozen=True)
class WinResult:
    won: bool
    pattern: Optional[LinePattern] = None


NO_WIN = WinResult(won=False)


def pattern_cells(layout: CardLayout, pattern: LinePattern) -> List[Tuple[int, int]]:
    """(row, col) positions covered by ``pattern`` on ``layout``."""
    if pattern.kind == "row":
        return [(pattern.index, c) for c in range(layout.columns)]
    if pattern.kind == "column":
        return [(r, pattern.index) for r in range(layout.rows)]
    if pattern.kind == "diagonal":
        n = layout.rows
        if pattern.index == 0:
            return [(i, i) for i in range(n)]
        return [(i, n - 1 - i) for i in range(n)]
    return [(r, c) for r in range(layout.rows) for c in range(layout.columns)]


def priority_order(layout: CardLayout, groups: Iterable[str] = DEFAULT_PATTERNS) -> List[LinePattern]:
    """Fixed scan order: rows, then columns, then diagonals, then blackout."""
    enabled = set(groups)
    unknown = enabled - set(PATTERN_GROUPS)
    if unknown:
        raise ValueError(f"Unknown win patterns: {sorted(unknown)}")
    order: List[LinePattern] = []
    if "rows" in enabled:
        order.extend(Row(r) for r in range(layout.rows))
    if "columns" in enabled:
        order.extend(Column(c) for c in range(layout.columns))
    # diagonals only exist on square cards
    if "diagonals" in enabled and layout.rows == layout.columns:
        order.extend([Diagonal(0), Diagonal(1)])
    if "blackout" in enabled:
        order.append(BLACKOUT)
    return order


@dataclass
class LineCounters:
    rows: List[int]
    columns: List[int]
    diagonals: List[int] = field(default_factory=lambda: [0, 0])
    total: int = 0

    def bump(self, layout: CardLayout, row: int, col: int, delta: int) -> None:
        self.rows[row] += delta
        self.columns[col] += delta
        if layout.rows == layout.columns:
            if row == col:
                self.diagonals[0] += delta
            if row + col == layout.columns - 1:
                self.diagonals[1] += delta
        self.total += delta

    def count(self, pattern: LinePattern) -> int:
        if pattern.kind == "row":
            return self.rows[pattern.index]
        if pattern.kind == "column":
            return self.columns[pattern.index]
        if pattern.kind == "diagonal":
            return self.diagonals[pattern.index]
        return self.total


def _pattern_size(layout: CardLayout, pattern: LinePattern) -> int:
    if pattern.kind == "row":
        return layout.columns
    if pattern.kind in ("column", "diagonal"):
        return layout.rows
    return layout.rows * layout.columns


class WinDetector:
    """Evaluates cards against an ordered pattern set. Never mutates a card."""

    def __init__(self, patterns: Sequence[str] = DEFAULT_PATTERNS):
        self.patterns = tuple(patterns)
        self._counters: Dict[str, LineCounters] = {}
        self._orders: Dict[CardLayout, List[LinePattern]] = {}

    def _order(self, layout: CardLayout) -> List[LinePattern]:
        if layout not in self._orders:
            self._orders[layout] = priority_order(layout, self.patterns)
        return self._orders[layout]

    def track(self, card: Card) -> LineCounters:
        layout = card.layout
        counters = LineCounters(rows=[0] * layout.rows, columns=[0] * layout.columns)
        for cell in card.cells():
            if cell.marked:
                counters.bump(layout, cell.row, cell.column, +1)
        self._counters[card.card_id] = counters
        return counters

    def forget(self, card_id: str) -> None:
        self._counters.pop(card_id, None)

    def notify(self, card: Card, row: int, col: int, marked: bool) -> None:
        """Record a mark (``marked=True``) or unmark on a tracked card."""
        counters = self._counters.get(card.card_id)
        if counters is None:
            self.track(card)
            return
        counters.bump(card.layout, row, col, +1 if marked else -1)

    def evaluate(self, card: Card) -> WinResult:
        counters = self._counters.get(card.card_id) or self.track(card)
        layout = card.layout
        free = 1 if layout.center is not None else 0
        if counters.total - free <= 0:
            return NO_WIN
        for pattern in self._order(layout):
            if counters.count(pattern) == _pattern_size(layout, pattern):
                return WinResult(won=True, pattern=pattern)
        return NO_WIN
