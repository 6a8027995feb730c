"""Outbound events observed by the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, List, Optional

from .card import Cell


@dataclass(frozen=True)
class Event:
    kind: ClassVar[str] = "event"


@dataclass(frozen=True)
class CallIssued(Event):
    kind: ClassVar[str] = "call_issued"
    number: int
    drawn_count: int
    letter: str


@dataclass(frozen=True)
class MatchStatusChanged(Event):
    kind: ClassVar[str] = "match_status_changed"
    status: str
    countdown: Optional[int] = None
    paused: bool = False


@dataclass(frozen=True)
class CardUpdated(Event):
    kind: ClassVar[str] = "card_updated"
    card_id: str
    cell: Cell


@dataclass(frozen=True)
class MatchWon(Event):
    kind: ClassVar[str] = "match_won"
    player_id: str
    card_id: str
    pattern: str


@dataclass(frozen=True)
class MatchEnded(Event):
    kind: ClassVar[str] = "match_ended"
    reason: str


@dataclass(frozen=True)
class ValidationRejected(Event):
    kind: ClassVar[str] = "validation_rejected"
    intent: str
    reason: str
    player_id: Optional[str] = None
    detail: str = ""


Subscriber = Callable[[Event], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: Event) -> None:
        for callback in list(self._subscribers):
            callback(event)
