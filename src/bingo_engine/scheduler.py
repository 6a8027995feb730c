"""Cancellable delays that drive the countdown and the number caller.

Two clocks share one interface: ``AsyncioScheduler`` runs on a real event
loop, ``VirtualScheduler`` only moves when ``advance``/``run_until_idle`` is
called, which makes matches fully deterministic in tests and simulations.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler:
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError

    def now(self) -> float:
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._loop.call_later(delay, callback)

    def now(self) -> float:
        return self._loop.time()


class VirtualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler(Scheduler):
    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, VirtualTimer]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> VirtualTimer:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        timer = VirtualTimer(self._now + delay, callback)
        heapq.heappush(self._queue, (timer.when, next(self._seq), timer))
        return timer

    def now(self) -> float:
        return self._now

    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def _pop_due(self, limit: Optional[float]) -> Optional[VirtualTimer]:
        while self._queue:
            when, _, timer = self._queue[0]
            if limit is not None and when > limit:
                return None
            heapq.heappop(self._queue)
            if not timer.cancelled:
                return timer
        return None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order. Returns the count fired."""
        target = self._now + seconds
        fired = 0
        while True:
            timer = self._pop_due(target)
            if timer is None:
                break
            self._now = timer.when
            timer.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_time: Optional[float] = None) -> int:
        """Fire timers until none are left, or the clock would pass ``max_time``."""
        fired = 0
        while True:
            timer = self._pop_due(max_time)
            if timer is None:
                break
            self._now = timer.when
            timer.callback()
            fired += 1
        return fired
