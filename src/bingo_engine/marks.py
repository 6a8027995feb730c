"""Mark validation: only called numbers may be marked."""

from __future__ import annotations

from .card import Card, Cell
from .errors import AlreadyMarked, ImmutableCell, InvalidCell, NotCalled, NotMarked
from .pool import DrawPool


def _locate(card: Card, row: int, col: int) -> Cell:
    layout = card.layout
    if not (0 <= row < layout.rows and 0 <= col < layout.columns):
        raise InvalidCell(f"({row}, {col}) is outside a {layout.rows}x{layout.columns} card")
    cell = card.cell(row, col)
    if cell.is_free:
        raise ImmutableCell("the free cell is always marked")
    return cell


def mark(card: Card, row: int, col: int, pool: DrawPool) -> Cell:
    """Mark one cell. Leaves the card untouched when rejected."""
    cell = _locate(card, row, col)
    if cell.marked:
        raise AlreadyMarked(f"{cell.number} is already marked")
    if not pool.is_called(cell.number):
        raise NotCalled(f"{cell.number} has not been called")
    cell.marked = True
    return cell


def unmark(card: Card, row: int, col: int) -> Cell:
    cell = _locate(card, row, col)
    if not cell.marked:
        raise NotMarked(f"{cell.number} is not marked")
    cell.marked = False
    return cell
