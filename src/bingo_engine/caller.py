"""Number caller: advances the draw pool on a randomized schedule."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Tuple

from .errors import ExhaustedPool, InvalidTransition
from .pool import DrawPool
from .rng import RandomSource
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class CallerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class NumberCaller:
    """Issues one draw every ``T`` seconds, ``T ~ U(interval)``.

    At most one draw is scheduled at any time; pausing cancels it and resuming
    schedules a fresh delay against the same pool. ``stop`` and pool
    exhaustion are permanent.
    """

    def __init__(
        self,
        pool: DrawPool,
        scheduler: Scheduler,
        rng: RandomSource,
        *,
        interval: Tuple[float, float] = (3.0, 5.0),
        on_call: Callable[[int, int], None],
        on_exhausted: Callable[[], None],
    ):
        self.pool = pool
        self.interval = interval
        self._scheduler = scheduler
        self._rng = rng
        self._on_call = on_call
        self._on_exhausted = on_exhausted
        self._handle: Optional[TimerHandle] = None
        self.state = CallerState.IDLE

    @property
    def current(self) -> Optional[int]:
        return self.pool.current

    @property
    def history(self) -> Tuple[int, ...]:
        return self.pool.drawn

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self.state is not CallerState.IDLE:
            raise InvalidTransition(f"caller cannot start from {self.state.value}")
        self.state = CallerState.RUNNING
        self._schedule_next()

    def pause(self) -> None:
        if self.state is not CallerState.RUNNING:
            raise InvalidTransition(f"caller cannot pause from {self.state.value}")
        self._cancel()
        self.state = CallerState.PAUSED

    def resume(self) -> None:
        if self.state is not CallerState.PAUSED:
            raise InvalidTransition(f"caller cannot resume from {self.state.value}")
        self.state = CallerState.RUNNING
        self._schedule_next()

    def stop(self) -> None:
        self._cancel()
        self.state = CallerState.STOPPED

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule_next(self) -> None:
        low, high = self.interval
        delay = self._rng.uniform(low, high)
        self._handle = self._scheduler.call_later(delay, self._fire)
        logger.debug("next call in %.2fs", delay)

    def _fire(self) -> None:
        self._handle = None
        if self.state is not CallerState.RUNNING:
            return
        try:
            number = self.pool.draw()
        except ExhaustedPool:
            logger.info("draw pool exhausted after %d calls", len(self.pool))
            self.stop()
            self._on_exhausted()
            return
        # The draw after the last number raises ExhaustedPool, leaving one
        # interval to mark the final call. Scheduled before notifying so a
        # listener that stops the caller also cancels it.
        self._schedule_next()
        self._on_call(number, len(self.pool))
