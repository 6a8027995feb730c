"""Error taxonomy for the bingo engine."""

from __future__ import annotations


class BingoError(Exception):
    """Base class for every rejection raised by the engine."""

    reason: str = "error"


class ExhaustedPool(BingoError):
    reason = "exhausted_pool"


class NotCalled(BingoError):
    reason = "not_called"


class AlreadyMarked(BingoError):
    reason = "already_marked"


class NotMarked(BingoError):
    reason = "not_marked"


class ImmutableCell(BingoError):
    reason = "immutable_cell"


class InvalidCell(BingoError):
    reason = "invalid_cell"


class InvalidTransition(BingoError):
    reason = "invalid_transition"


class InsufficientPlayers(BingoError):
    reason = "insufficient_players"


class UnknownPlayer(BingoError):
    reason = "unknown_player"


class UnknownCard(BingoError):
    reason = "unknown_card"


class DuplicatePlayer(BingoError):
    reason = "duplicate_player"


class LobbyFull(BingoError):
    reason = "lobby_full"
