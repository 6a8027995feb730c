"""Match lifecycle: lobby, countdown, active play and resolution.

The match is the single owner of game state. Presentation code subscribes to
``match.bus`` and forwards intents by calling the public methods below; every
rejected intent raises a ``BingoError`` and is also published as
``ValidationRejected``.
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar

from . import marks
from .caller import NumberCaller
from .card import Card, generate_card, letter_for_number
from .config import EngineConfig
from .errors import (
    BingoError,
    DuplicatePlayer,
    InsufficientPlayers,
    InvalidTransition,
    LobbyFull,
    UnknownCard,
    UnknownPlayer,
)
from .events import (
    CallIssued,
    CardUpdated,
    EventBus,
    MatchEnded,
    MatchStatusChanged,
    MatchWon,
    ValidationRejected,
)
from .pool import DrawPool
from .rng import create_rng, derive_seed
from .scheduler import Scheduler, TimerHandle
from .win import LinePattern, WinDetector, WinResult

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

MIN_PLAYERS = 2


class MatchStatus(str, Enum):
    LOBBY = "lobby"
    STARTING = "starting"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass
class Player:
    player_id: str
    name: str
    joined: int
    ready: bool = False
    card_ids: List[str] = field(default_factory=list)


def intent(name: str) -> Callable[[F], F]:
    """Publish ``ValidationRejected`` for any BingoError raised by the intent, then re-raise."""

    def decorate(fn: F) -> F:
        sig = inspect.signature(fn)

        @functools.wraps(fn)
        def wrapper(self: "Match", *args: Any, **kwargs: Any) -> Any:
            try:
                return fn(self, *args, **kwargs)
            except BingoError as err:
                player_id = sig.bind_partial(self, *args, **kwargs).arguments.get("player_id")
                logger.info("rejected %s from %s: %s", name, player_id, err.reason)
                self.bus.publish(
                    ValidationRejected(
                        intent=name, reason=err.reason, player_id=player_id, detail=str(err)
                    )
                )
                raise

        return wrapper  # type: ignore[return-value]

    return decorate


class Match:
    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[EngineConfig] = None,
        *,
        bus: Optional[EventBus] = None,
    ):
        self.config = config or EngineConfig()
        self.bus = bus or EventBus()
        self.status = MatchStatus.LOBBY
        self.countdown: Optional[int] = None
        self.paused = False
        self.winner: Optional[str] = None
        self.winning_card: Optional[str] = None
        self.win_pattern: Optional[LinePattern] = None
        self.end_reason: Optional[str] = None
        self.pool: Optional[DrawPool] = None
        self.caller: Optional[NumberCaller] = None
        self.detector = WinDetector(self.config.win_patterns)
        self._scheduler = scheduler
        self._players: Dict[str, Player] = {}
        self._cards: Dict[str, Card] = {}
        self._joined = 0
        self._countdown_handle: Optional[TimerHandle] = None

    # -- read side ---------------------------------------------------------

    @property
    def players(self) -> Dict[str, bool]:
        """player_id -> ready, in join order."""
        return {p.player_id: p.ready for p in self._ordered_players()}

    def player(self, player_id: str) -> Player:
        try:
            return self._players[player_id]
        except KeyError:
            raise UnknownPlayer(f"no player {player_id!r}") from None

    def cards_of(self, player_id: str) -> List[Card]:
        return [self._cards[cid] for cid in self.player(player_id).card_ids]

    def card(self, card_id: str) -> Card:
        try:
            return self._cards[card_id]
        except KeyError:
            raise UnknownCard(f"no card {card_id!r}") from None

    @property
    def drawn(self) -> tuple:
        return self.pool.drawn if self.pool else ()

    def _ordered_players(self) -> List[Player]:
        return sorted(self._players.values(), key=lambda p: p.joined)

    def _require(self, *allowed: MatchStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransition(f"not allowed while {self.status.value}")

    def _card_for(self, player_id: str, card_id: str) -> Card:
        player = self.player(player_id)
        if card_id not in player.card_ids:
            raise UnknownCard(f"{player_id!r} holds no card {card_id!r}")
        return self._cards[card_id]

    def _active_pool(self) -> DrawPool:
        if self.pool is None:
            raise InvalidTransition("no draw pool before the match is active")
        return self.pool

    def _active_caller(self) -> NumberCaller:
        if self.caller is None:
            raise InvalidTransition("no number caller before the match is active")
        return self.caller

    # -- lobby ---------------------------------------------------------------

    @intent("join")
    def join(self, player_id: str, name: str) -> Player:
        self._require(MatchStatus.LOBBY)
        if player_id in self._players:
            raise DuplicatePlayer(f"{player_id!r} already joined")
        if len(self._players) >= self.config.max_players:
            raise LobbyFull(f"lobby is full ({self.config.max_players} players)")
        player = Player(player_id=player_id, name=name, joined=self._joined)
        self._joined += 1
        self._players[player_id] = player
        logger.info("%s joined as %r (%d/%d)", player_id, name, len(self._players), self.config.max_players)
        self._maybe_auto_start()
        return player

    @intent("leave")
    def leave(self, player_id: str) -> None:
        self._require(MatchStatus.LOBBY)
        self.player(player_id)
        del self._players[player_id]
        logger.info("%s left the lobby", player_id)
        self._maybe_auto_start()

    @intent("set_ready")
    def set_ready(self, player_id: str, ready: bool) -> None:
        self._require(MatchStatus.LOBBY)
        self.player(player_id).ready = bool(ready)
        self._maybe_auto_start()

    def can_start(self) -> bool:
        return len(self._players) >= MIN_PLAYERS and all(p.ready for p in self._players.values())

    @intent("request_start")
    def request_start(self) -> None:
        self._require(MatchStatus.LOBBY)
        if not self.can_start():
            ready = sum(1 for p in self._players.values() if p.ready)
            raise InsufficientPlayers(
                f"need at least {MIN_PLAYERS} players, all ready ({ready}/{len(self._players)} ready)"
            )
        self._begin_countdown()

    def _maybe_auto_start(self) -> None:
        if self.config.auto_start and self.status is MatchStatus.LOBBY and self.can_start():
            self._begin_countdown()

    # -- countdown -----------------------------------------------------------

    def _set_status(self, status: MatchStatus) -> None:
        self.status = status
        logger.info("match %s", status.value)
        self._publish_status()

    def _publish_status(self) -> None:
        self.bus.publish(
            MatchStatusChanged(status=self.status.value, countdown=self.countdown, paused=self.paused)
        )

    def _begin_countdown(self) -> None:
        self.countdown = self.config.countdown_sec
        self._set_status(MatchStatus.STARTING)
        # a listener may have ended the match on the starting event
        if self.status is not MatchStatus.STARTING:
            return
        if self.countdown <= 0:
            self._activate()
        else:
            self._countdown_handle = self._scheduler.call_later(self.config.countdown_tick_sec, self._tick)

    def _tick(self) -> None:
        self._countdown_handle = None
        if self.status is not MatchStatus.STARTING or self.countdown is None:
            return
        self.countdown -= 1
        if self.countdown <= 0:
            self._activate()
            return
        self._countdown_handle = self._scheduler.call_later(self.config.countdown_tick_sec, self._tick)
        self._publish_status()

    def _activate(self) -> None:
        cfg = self.config
        layout = cfg.layout
        self.pool = DrawPool(create_rng(cfg.rng_engine, derive_seed(cfg.seed, "pool")), size=layout.max_number)
        for player in self._ordered_players():
            rng = create_rng(cfg.rng_engine, derive_seed(cfg.seed, "card", player.joined))
            player.card_ids = []
            for i in range(cfg.cards_per_player):
                card_id = f"{player.player_id}/{i}"
                card = generate_card(rng, card_id=card_id, player_id=player.player_id, layout=layout)
                self._cards[card_id] = card
                self.detector.track(card)
                player.card_ids.append(card_id)
        self.countdown = None
        self.caller = NumberCaller(
            self.pool,
            self._scheduler,
            create_rng(cfg.rng_engine, derive_seed(cfg.seed, "interval")),
            interval=cfg.call_interval,
            on_call=self._on_call,
            on_exhausted=self._on_exhausted,
        )
        # caller is running by the time listeners see the active status
        self.status = MatchStatus.ACTIVE
        self.caller.start()
        logger.info("match %s", self.status.value)
        self._publish_status()

    # -- active play ---------------------------------------------------------

    def _on_call(self, number: int, drawn_count: int) -> None:
        letter = letter_for_number(number, self.config.layout)
        logger.info("call %s-%d (%d drawn)", letter, number, drawn_count)
        self.bus.publish(CallIssued(number=number, drawn_count=drawn_count, letter=letter))

    def _on_exhausted(self) -> None:
        if self.status is MatchStatus.ACTIVE:
            self._finish("exhausted")

    @intent("mark")
    def mark(self, player_id: str, card_id: str, row: int, col: int) -> Card:
        self._require(MatchStatus.ACTIVE)
        card = self._card_for(player_id, card_id)
        cell = marks.mark(card, row, col, self._active_pool())
        self.detector.notify(card, row, col, marked=True)
        self.bus.publish(CardUpdated(card_id=card_id, cell=replace(cell)))
        result = self.detector.evaluate(card)
        if result.won and self.status is MatchStatus.ACTIVE:
            self._finish("win", player_id=player_id, card_id=card_id, pattern=result.pattern)
        return card

    @intent("unmark")
    def unmark(self, player_id: str, card_id: str, row: int, col: int) -> Card:
        self._require(MatchStatus.ACTIVE)
        card = self._card_for(player_id, card_id)
        cell = marks.unmark(card, row, col)
        self.detector.notify(card, row, col, marked=False)
        self.bus.publish(CardUpdated(card_id=card_id, cell=replace(cell)))
        return card

    @intent("call_bingo")
    def call_bingo(self, player_id: str, card_id: str) -> WinResult:
        """Check a claim. Wins are settled on mark, so this never changes state."""
        self._require(MatchStatus.ACTIVE, MatchStatus.FINISHED)
        return self.detector.evaluate(self._card_for(player_id, card_id))

    @intent("pause")
    def pause(self) -> None:
        self._require(MatchStatus.ACTIVE)
        if self.paused:
            raise InvalidTransition("match is already paused")
        self._active_caller().pause()
        self.paused = True
        logger.info("match paused after %d calls", len(self.drawn))
        self._publish_status()

    @intent("resume")
    def resume(self) -> None:
        self._require(MatchStatus.ACTIVE)
        if not self.paused:
            raise InvalidTransition("match is not paused")
        self._active_caller().resume()
        self.paused = False
        logger.info("match resumed")
        self._publish_status()

    @intent("end_match")
    def end_match(self) -> None:
        self._require(MatchStatus.LOBBY, MatchStatus.STARTING, MatchStatus.ACTIVE)
        self._finish("ended")

    # -- resolution ----------------------------------------------------------

    def _finish(
        self,
        reason: str,
        *,
        player_id: Optional[str] = None,
        card_id: Optional[str] = None,
        pattern: Optional[LinePattern] = None,
    ) -> None:
        if self._countdown_handle is not None:
            self._countdown_handle.cancel()
            self._countdown_handle = None
        if self.caller is not None:
            self.caller.stop()
        self.countdown = None
        self.paused = False
        self.end_reason = reason
        self.winner = player_id
        self.winning_card = card_id
        self.win_pattern = pattern
        if player_id is not None and pattern is not None:
            logger.info("%s wins with %s on %s after %d calls", player_id, pattern, card_id, len(self.drawn))
            self.bus.publish(MatchWon(player_id=player_id, card_id=card_id or "", pattern=str(pattern)))
        self._set_status(MatchStatus.FINISHED)
        self.bus.publish(MatchEnded(reason=reason))

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view for observers. Copies, never live references."""
        return {
            "status": self.status.value,
            "paused": self.paused,
            "countdown": self.countdown,
            "winner": self.winner,
            "winning_card": self.winning_card,
            "pattern": str(self.win_pattern) if self.win_pattern else None,
            "end_reason": self.end_reason,
            "current": self.pool.current if self.pool else None,
            "drawn": list(self.drawn),
            "players": [
                {"id": p.player_id, "name": p.name, "ready": p.ready, "cards": list(p.card_ids)}
                for p in self._ordered_players()
            ],
            "cards": {
                cid: {
                    "player_id": card.player_id,
                    "columns": card.column_numbers(),
                    "marked": [[c.marked for c in column] for column in card.grid],
                }
                for cid, card in self._cards.items()
            },
        }
