from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from bingo_engine.card import letter_for_number
from bingo_engine.errors import ExhaustedPool
from bingo_engine.pool import DrawPool
from bingo_engine.rng import ENGINES, create_rng


@given(
    seed=st.integers(min_value=0, max_value=2**32),
    engine=st.sampled_from(ENGINES),
    k=st.integers(min_value=0, max_value=75),
)
def test_cardinality_and_uniqueness_at_every_step(seed, engine, k):
    pool = DrawPool(create_rng(engine, seed))
    history = []
    for _ in range(k):
        before = pool.drawn
        number = pool.draw()
        # monotonic: the old history is a prefix of the new one
        assert pool.drawn[: len(before)] == before
        assert number not in before
        history.append(number)
        assert len(pool.drawn) + len(pool.remaining) == 75
        assert not (set(pool.drawn) & pool.remaining)
        assert set(pool.drawn) | pool.remaining == set(range(1, 76))
    assert list(pool.drawn) == history
    assert len(set(history)) == len(history)
    assert pool.current == (history[-1] if history else None)


def test_exhaustion_after_75_draws():
    pool = DrawPool(create_rng("py_random", 3))
    drawn = [pool.draw() for _ in range(75)]
    assert sorted(drawn) == list(range(1, 76))
    assert pool.exhausted
    with pytest.raises(ExhaustedPool):
        pool.draw()
    assert len(pool) == 75


def test_is_called():
    pool = DrawPool(create_rng("py_random", 8))
    n = pool.draw()
    assert pool.is_called(n)
    assert not any(pool.is_called(x) for x in pool.remaining)


def test_letters_of_first_fifteen_calls():
    pool = DrawPool(create_rng("py_random", 2024))
    calls = [pool.draw() for _ in range(15)]
    letters = {letter_for_number(n) for n in calls}
    ranges = {"B": range(1, 16), "I": range(16, 31), "N": range(31, 46), "G": range(46, 61), "O": range(61, 76)}
    expected = {letter for letter, r in ranges.items() if any(n in r for n in calls)}
    assert letters == expected
    for n in calls:
        assert n in ranges[letter_for_number(n)]


def test_invalid_size():
    with pytest.raises(ValueError):
        DrawPool(create_rng("py_random", 1), size=0)
