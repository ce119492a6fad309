"""Stateless game contract: start a game, submit a move, ask for a hint.

The caller owns the ``GameState`` and passes it in on every call; nothing is
kept here between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging
import random

from .ai import MAX_LEVEL, ComputerPlayer
from .game import (
    CANONICAL_RULES,
    Cell,
    GameState,
    GameStatus,
    Rules,
    apply_move,
    legal_moves,
    new_game,
)
from .hints import best_move_for_blue, explain

logger = logging.getLogger(__name__)

INVALID_INDICES = "Invalid indices"
NOT_BLUES_TURN = "Not blue's turn"
NOT_REDS_TURN = "Not red's turn"
ILLEGAL_MOVE = "Illegal move"
NO_LEGAL_MOVES = "No legal moves"


class MoveRejected(ValueError):
    """A submitted move failed validation; the message is the wire error text."""


@dataclass
class MoveResult:
    ok: bool
    state: GameState
    error: Optional[str] = None


@dataclass
class Hint:
    board_idx: int
    cell_idx: int
    explanation: str


def validate_move(
    state: GameState,
    board_idx: int,
    cell_idx: int,
    player: Cell,
    rules: Rules = CANONICAL_RULES,
) -> None:
    """Raise ``MoveRejected`` unless ``player`` may play (board_idx, cell_idx) now."""
    if not (0 <= board_idx < 9 and 0 <= cell_idx < 9):
        raise MoveRejected(INVALID_INDICES)
    if state.to_move is not player:
        raise MoveRejected(NOT_BLUES_TURN if player is Cell.BLUE else NOT_REDS_TURN)
    if (board_idx, cell_idx) not in legal_moves(state, rules):
        raise MoveRejected(ILLEGAL_MOVE)


def make_move(
    state: GameState,
    board_idx: int,
    cell_idx: int,
    player_is_blue: bool = True,
    level: int = MAX_LEVEL,
    rng: Optional[random.Random] = None,
    rules: Rules = CANONICAL_RULES,
) -> MoveResult:
    """Validate and apply a human move, then let the computer answer a Blue move.

    ``state`` is never mutated: on success the returned state is a new value,
    on rejection it is ``state`` itself.
    """
    player = Cell.BLUE if player_is_blue else Cell.RED
    try:
        validate_move(state, board_idx, cell_idx, player, rules)
    except MoveRejected as exc:
        logger.debug(
            "rejected %s move (%s, %s): %s", player.value, board_idx, cell_idx, exc
        )
        return MoveResult(ok=False, state=state, error=str(exc))

    result = state.clone()
    apply_move(result, board_idx, cell_idx, player, rules)

    if player is Cell.BLUE and result.status is GameStatus.RED_TO_MOVE:
        computer = ComputerPlayer(level=level, rng=rng or random.Random(), rules=rules)
        computer.play(result)

    return MoveResult(ok=True, state=result)


def get_hint(state: GameState, rules: Rules = CANONICAL_RULES) -> Hint:
    """Suggest Blue's best move and say why."""
    if state.status is not GameStatus.BLUE_TO_MOVE:
        return Hint(0, 0, NOT_BLUES_TURN)
    moves = legal_moves(state, rules)
    if not moves:
        return Hint(0, 0, NO_LEGAL_MOVES)
    board_idx, cell_idx = best_move_for_blue(state, moves, rules)
    return Hint(board_idx, cell_idx, explain(state, (board_idx, cell_idx), rules))
