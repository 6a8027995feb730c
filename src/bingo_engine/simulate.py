"""Headless matches with bot players.

Bots behave like a presentation client: they observe ``CallIssued`` and send
``mark`` intents after a reaction delay. Nothing here reaches into engine
state beyond the public read side of ``Match``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .config import EngineConfig
from .events import CallIssued, Event, EventBus, MatchEnded
from .match import Match, MatchStatus
from .scheduler import AsyncioScheduler, Scheduler, VirtualScheduler

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    match: Match
    elapsed: float
    events: List[Event] = field(default_factory=list)


class BotPlayers:
    def __init__(self, match: Match, scheduler: Scheduler, player_ids: List[str], reaction_sec: float):
        self.match = match
        self.player_ids = player_ids
        self._scheduler = scheduler
        self._reaction = reaction_sec

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(self._on_event)

    def _on_event(self, event: Event) -> None:
        if isinstance(event, CallIssued):
            self._scheduler.call_later(self._reaction, lambda n=event.number: self._daub(n))

    def _daub(self, number: int) -> None:
        for pid in self.player_ids:
            for card in self.match.cards_of(pid):
                pos = card.position_of(number)
                # a win earlier in this loop finishes the match
                if pos is None or self.match.status is not MatchStatus.ACTIVE:
                    continue
                self.match.mark(pid, card.card_id, *pos)


def _setup(config: EngineConfig, scheduler: Scheduler, players: int, reaction_sec: float) -> SimulationResult:
    bus = EventBus()
    result = SimulationResult(match=Match(scheduler, config, bus=bus), elapsed=0.0)
    bus.subscribe(result.events.append)
    ids = [f"bot{i + 1}" for i in range(players)]
    BotPlayers(result.match, scheduler, ids, reaction_sec).attach(bus)
    # everyone joins before anyone readies, so auto_start waits for the full table
    for pid in ids:
        result.match.join(pid, pid.capitalize())
    for pid in ids:
        result.match.set_ready(pid, True)
    if result.match.status is MatchStatus.LOBBY:
        result.match.request_start()
    return result


def simulate_match(
    config: EngineConfig,
    *,
    players: int = 2,
    reaction_sec: float = 0.5,
    max_time: Optional[float] = None,
) -> SimulationResult:
    """Run a match to completion on a virtual clock."""
    if reaction_sec >= config.call_interval[0]:
        logger.warning("reaction %.2fs is not shorter than the call interval; bots may miss the last call", reaction_sec)
    scheduler = VirtualScheduler()
    result = _setup(config, scheduler, players, reaction_sec)
    scheduler.run_until_idle(max_time=max_time)
    if result.match.status is not MatchStatus.FINISHED:
        result.match.end_match()
    result.elapsed = scheduler.now()
    return result


async def simulate_match_realtime(
    config: EngineConfig,
    *,
    players: int = 2,
    reaction_sec: float = 0.5,
) -> SimulationResult:
    """Run a match on the running asyncio loop, in wall-clock time."""
    loop = asyncio.get_running_loop()
    scheduler = AsyncioScheduler(loop)
    done: asyncio.Future = loop.create_future()

    def on_event(event: Event) -> None:
        if isinstance(event, MatchEnded) and not done.done():
            done.set_result(event.reason)

    started = loop.time()
    result = _setup(config, scheduler, players, reaction_sec)
    result.match.bus.subscribe(on_event)
    if result.match.status is not MatchStatus.FINISHED:
        await done
    result.elapsed = loop.time() - started
    return result
