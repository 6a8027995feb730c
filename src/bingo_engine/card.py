"""Card generation and the card/cell data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .feasibility import check_layout
from .rng import RandomSource


@dataclass(frozen=True)
class CardLayout:
    """Shape of a card: ``columns`` x ``rows`` cells, ``span`` numbers per column."""

    columns: int = 5
    rows: int = 5
    span: int = 15
    free_center: bool = True
    letters: str = "BINGO"

    @property
    def max_number(self) -> int:
        return self.columns * self.span

    @property
    def center(self) -> Optional[Tuple[int, int]]:
        """(row, col) of the free cell, if the layout has one."""
        if not self.free_center:
            return None
        return self.rows // 2, self.columns // 2

    def column_range(self, col: int) -> Tuple[int, int]:
        low = self.span * col + 1
        return low, low + self.span - 1

    def column_for_number(self, number: int) -> Optional[int]:
        if number < 1 or number > self.max_number:
            return None
        return (number - 1) // self.span


STANDARD_LAYOUT = CardLayout()


def letter_for_number(number: int, layout: CardLayout = STANDARD_LAYOUT) -> str:
    col = layout.column_for_number(number)
    if col is None:
        return ""
    return layout.letters[col]


@dataclass
class Cell:
    column: int
    row: int
    number: Optional[int]
    marked: bool = False

    @property
    def is_free(self) -> bool:
        return self.number is None


@dataclass
class Card:
    """A player's grid, indexed ``grid[column][row]``.

    Numbers never change after generation; only ``Cell.marked`` does, and only
    through the mark validator.
    """

    card_id: str
    player_id: str
    layout: CardLayout
    grid: List[List[Cell]]
    _positions: Dict[int, Tuple[int, int]] = field(
        init=False, default_factory=dict, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for cell in self.cells():
            if cell.number is not None:
                self._positions[cell.number] = (cell.row, cell.column)

    def cell(self, row: int, col: int) -> Cell:
        return self.grid[col][row]

    def cells(self) -> Iterator[Cell]:
        for column in self.grid:
            yield from column

    def contains(self, number: int) -> bool:
        return number in self._positions

    def position_of(self, number: int) -> Optional[Tuple[int, int]]:
        """(row, col) holding ``number``, or None when the card lacks it."""
        return self._positions.get(number)

    def numbers(self) -> List[int]:
        return sorted(self._positions)

    def column_numbers(self) -> List[List[Optional[int]]]:
        return [[c.number for c in column] for column in self.grid]

    def marked_count(self) -> int:
        """Marked cells, not counting the free cell."""
        return sum(1 for c in self.cells() if c.marked and not c.is_free)


def generate_card(
    rng: RandomSource,
    *,
    card_id: str,
    player_id: str,
    layout: CardLayout = STANDARD_LAYOUT,
) -> Card:
    """Sample each column without replacement from its own range."""
    feas = check_layout(layout)
    if not feas.feasible:
        raise ValueError("; ".join(feas.reasons))

    center = layout.center
    grid: List[List[Cell]] = []
    for col in range(layout.columns):
        low, high = layout.column_range(col)
        values: Sequence[int] = rng.sample(range(low, high + 1), layout.rows)
        column: List[Cell] = []
        for row, value in enumerate(values):
            if center == (row, col):
                column.append(Cell(column=col, row=row, number=None, marked=True))
            else:
                column.append(Cell(column=col, row=row, number=int(value)))
        grid.append(column)
    return Card(card_id=card_id, player_id=player_id, layout=layout, grid=grid)
