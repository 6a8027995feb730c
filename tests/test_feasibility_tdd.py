from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from bingo_engine.card import STANDARD_LAYOUT, CardLayout
from bingo_engine.feasibility import check_interval, check_layout


def test_standard_layout_is_feasible():
    result = check_layout(STANDARD_LAYOUT)
    assert result.feasible is True
    assert result.reasons == []


@pytest.mark.parametrize(
    "layout, fragment",
    [
        (CardLayout(rows=0), "must be >= 1"),
        (CardLayout(span=4), "span < rows"),
        (CardLayout(rows=4, columns=4, letters="BING"), "free_center"),
        (CardLayout(letters="BIN"), "letters"),
    ],
)
def test_infeasible_layouts_name_the_problem(layout, fragment):
    result = check_layout(layout)
    assert result.feasible is False
    assert any(fragment in r for r in result.reasons)


@given(
    rows=st.integers(min_value=1, max_value=9),
    columns=st.integers(min_value=1, max_value=9),
    span=st.integers(min_value=1, max_value=30),
    free_center=st.booleans(),
)
def test_layout_feasibility_property(rows, columns, span, free_center):
    layout = CardLayout(columns=columns, rows=rows, span=span, free_center=free_center, letters="X" * columns)
    odd = rows % 2 == 1 and columns % 2 == 1
    expected = span >= rows and (odd or not free_center)
    assert check_layout(layout).feasible is expected


@pytest.mark.parametrize(
    "low, high, ok",
    [(3.0, 5.0, True), (2.0, 2.0, True), (0.0, 1.0, False), (5.0, 3.0, False), (-1.0, 2.0, False)],
)
def test_interval_bounds(low, high, ok):
    assert check_interval(low, high).feasible is ok
