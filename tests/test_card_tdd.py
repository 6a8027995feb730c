from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from bingo_engine.card import CardLayout, generate_card, letter_for_number
from bingo_engine.feasibility import check_layout
from bingo_engine.rng import ENGINES, create_rng


@given(
    seed=st.integers(min_value=0, max_value=2**32),
    engine=st.sampled_from(ENGINES),
)
def test_columns_distinct_within_range_and_free_center(seed, engine):
    card = generate_card(create_rng(engine, seed), card_id="c", player_id="p")
    all_numbers = []
    for col, column in enumerate(card.grid):
        low, high = 15 * col + 1, 15 * col + 15
        values = [cell.number for cell in column if not cell.is_free]
        assert len(set(values)) == len(values)
        assert all(low <= v <= high for v in values)
        all_numbers.extend(values)
    assert len(all_numbers) == 24
    assert len(set(all_numbers)) == 24

    center = card.cell(2, 2)
    assert center.number is None
    assert center.marked is True
    assert [c for c in card.cells() if c.is_free] == [center]
    assert all(not c.marked for c in card.cells() if not c.is_free)


def test_cell_coordinates_and_positions():
    card = generate_card(create_rng("py_random", 5), card_id="c", player_id="p")
    for cell in card.cells():
        assert card.cell(cell.row, cell.column) is cell
        if cell.number is not None:
            assert card.position_of(cell.number) == (cell.row, cell.column)
            assert card.contains(cell.number)
    assert card.position_of(0) is None
    assert card.marked_count() == 0


def test_same_seed_same_card():
    a = generate_card(create_rng("py_random", 42), card_id="a", player_id="p")
    b = generate_card(create_rng("py_random", 42), card_id="b", player_id="p")
    assert a.column_numbers() == b.column_numbers()


def test_letter_for_number():
    assert letter_for_number(7) == "B"
    assert letter_for_number(15) == "B"
    assert letter_for_number(16) == "I"
    assert letter_for_number(45) == "N"
    assert letter_for_number(46) == "G"
    assert letter_for_number(73) == "O"
    assert letter_for_number(0) == ""
    assert letter_for_number(76) == ""


def test_parameterised_layout_without_free_center():
    layout = CardLayout(columns=3, rows=4, span=10, free_center=False, letters="ABC")
    card = generate_card(create_rng("py_random", 1), card_id="c", player_id="p", layout=layout)
    assert len(card.grid) == 3
    assert all(len(col) == 4 for col in card.grid)
    assert not any(c.is_free for c in card.cells())
    assert letter_for_number(25, layout) == "C"
    assert letter_for_number(31, layout) == ""


def test_infeasible_layouts():
    assert not check_layout(CardLayout(rows=5, span=4)).feasible
    assert not check_layout(CardLayout(columns=4, rows=4, letters="BING")).feasible
    assert check_layout(CardLayout(columns=4, rows=4, letters="BING", free_center=False)).feasible
    assert not check_layout(CardLayout(letters="BIN")).feasible
    with pytest.raises(ValueError):
        generate_card(create_rng("py_random", 1), card_id="c", player_id="p", layout=CardLayout(span=3))
