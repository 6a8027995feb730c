from __future__ import annotations

import asyncio

from bingo_engine.config import EngineConfig
from bingo_engine.events import CallIssued, MatchWon
from bingo_engine.match import MatchStatus
from bingo_engine.simulate import simulate_match, simulate_match_realtime


def test_bots_play_to_a_real_line_win():
    result = simulate_match(EngineConfig(seed=5), players=4)
    match = result.match
    assert match.status is MatchStatus.FINISHED
    assert match.end_reason == "win"
    card = match.card(match.winning_card)
    assert card.player_id == match.winner
    assert match.call_bingo(match.winner, card.card_id).pattern == match.win_pattern
    # countdown plus at least four calls at >= 3s each
    assert result.elapsed >= 10 + 4 * 3.0
    won = [e for e in result.events if isinstance(e, MatchWon)]
    assert len(won) == 1
    last_call = max(i for i, e in enumerate(result.events) if isinstance(e, CallIssued))
    assert last_call < result.events.index(won[0])


def test_same_seed_same_game():
    a = simulate_match(EngineConfig(seed=123), players=3)
    b = simulate_match(EngineConfig(seed=123), players=3)
    assert a.match.drawn == b.match.drawn
    assert (a.match.winner, a.match.win_pattern) == (b.match.winner, b.match.win_pattern)


def test_numpy_engine_game():
    result = simulate_match(EngineConfig(seed=8, rng_engine="numpy_pcg64"), players=2)
    assert result.match.end_reason == "win"


def test_time_limit_ends_match():
    result = simulate_match(EngineConfig(seed=1), players=2, max_time=15.0)
    assert result.match.end_reason == "ended"
    assert result.match.winner is None


def test_realtime_run_on_asyncio():
    config = EngineConfig(seed=4, countdown_sec=0, call_interval=(0.005, 0.01))
    result = asyncio.run(simulate_match_realtime(config, players=2, reaction_sec=0.001))
    assert result.match.status is MatchStatus.FINISHED
    assert result.match.end_reason == "win"


def test_auto_start_waits_for_every_bot():
    result = simulate_match(EngineConfig(seed=1, auto_start=True), players=4)
    match = result.match
    assert match.status is MatchStatus.FINISHED
    assert list(match.players) == ["bot1", "bot2", "bot3", "bot4"]
    assert all(len(match.cards_of(pid)) == 1 for pid in match.players)
    assert match.end_reason == "win"
