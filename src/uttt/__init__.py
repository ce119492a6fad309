"""Ultimate Tic-Tac-Toe rules engine with a graduated computer opponent."""

from .ai import ComputerPlayer, evaluate
from .engine import Hint, MoveResult, get_hint, make_move
from .game import (
    CANONICAL_RULES,
    LENIENT_RULES,
    Cell,
    GameState,
    GameStatus,
    Rules,
    apply_move,
    check_winner,
    legal_moves,
    new_game,
)

__all__ = [
    "CANONICAL_RULES",
    "LENIENT_RULES",
    "Cell",
    "ComputerPlayer",
    "GameState",
    "GameStatus",
    "Hint",
    "MoveResult",
    "Rules",
    "apply_move",
    "check_winner",
    "evaluate",
    "get_hint",
    "legal_moves",
    "make_move",
    "new_game",
]
