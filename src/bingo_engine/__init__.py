"""75-ball bingo engine: cards, draws, mark validation, win detection and match lifecycle."""

from .card import Card, CardLayout, Cell, generate_card, letter_for_number
from .config import EngineConfig
from .errors import BingoError
from .events import EventBus
from .match import Match, MatchStatus
from .pool import DrawPool
from .scheduler import AsyncioScheduler, VirtualScheduler
from .version import __version__
from .win import LinePattern, WinDetector, WinResult

__all__ = [
    "Card",
    "CardLayout",
    "Cell",
    "generate_card",
    "letter_for_number",
    "EngineConfig",
    "BingoError",
    "EventBus",
    "Match",
    "MatchStatus",
    "DrawPool",
    "AsyncioScheduler",
    "VirtualScheduler",
    "LinePattern",
    "WinDetector",
    "WinResult",
    "__version__",
]
