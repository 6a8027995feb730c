from __future__ import annotations

import copy

import pytest

from bingo_engine import marks
from bingo_engine.card import generate_card
from bingo_engine.errors import AlreadyMarked, ImmutableCell, InvalidCell, NotCalled, NotMarked
from bingo_engine.pool import DrawPool
from bingo_engine.rng import create_rng


def card_and_pool():
    card = generate_card(create_rng("py_random", 10), card_id="c", player_id="p")
    pool = DrawPool(create_rng("py_random", 11))
    return card, pool


def draw_until_on_card(card, pool):
    while True:
        n = pool.draw()
        if card.contains(n):
            return card.position_of(n)


def test_mark_requires_called_number():
    card, pool = card_and_pool()
    cell = card.cell(0, 0)
    with pytest.raises(NotCalled):
        marks.mark(card, 0, 0, pool)
    assert cell.marked is False


def test_mark_then_already_marked_leaves_state_unchanged():
    card, pool = card_and_pool()
    row, col = draw_until_on_card(card, pool)
    cell = marks.mark(card, row, col, pool)
    assert cell.marked is True
    before = copy.deepcopy(card.grid)
    with pytest.raises(AlreadyMarked):
        marks.mark(card, row, col, pool)
    assert card.grid == before


def test_unmark_round_trip_and_not_marked():
    card, pool = card_and_pool()
    row, col = draw_until_on_card(card, pool)
    marks.mark(card, row, col, pool)
    assert marks.unmark(card, row, col).marked is False
    with pytest.raises(NotMarked):
        marks.unmark(card, row, col)


def test_free_cell_is_immutable():
    card, pool = card_and_pool()
    with pytest.raises(ImmutableCell):
        marks.mark(card, 2, 2, pool)
    with pytest.raises(ImmutableCell):
        marks.unmark(card, 2, 2)
    assert card.cell(2, 2).marked is True


@pytest.mark.parametrize("row,col", [(-1, 0), (0, 5), (5, 0), (2, -1)])
def test_out_of_grid(row, col):
    card, pool = card_and_pool()
    with pytest.raises(InvalidCell):
        marks.mark(card, row, col, pool)
