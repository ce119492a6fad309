"""Move suggestions for the human (Blue) side, with a one-line rationale."""

from __future__ import annotations

from typing import Sequence

from .ai import (
    creates_fork,
    creates_meta_threat,
    evaluate,
    would_win_board,
    would_win_meta,
)
from .game import (
    CANONICAL_RULES,
    Cell,
    GameState,
    GameStatus,
    Move,
    Rules,
    apply_move,
    is_live_board,
    legal_moves,
)

WINS_GAME = "Wins the game!"
WINS_BOARD_AND_THREATENS = "Wins board and threatens the game"
WINS_BOARD = "Wins a board"
BLOCKS_BOARD = "Blocks red from winning a board"
THREATENS_GAME = "Threatens to win the game"
CREATES_FORK = "Creates two ways to win a board"
FREE_CHOICE = "Gives you a free choice next"
POSITIONAL = "Best positional move"


def _adversarial_score(state: GameState, move: Move, rules: Rules) -> int:
    # Red answers with whatever is best for Red
    s1 = state.clone()
    apply_move(s1, move[0], move[1], Cell.BLUE, rules)
    if s1.status is not GameStatus.RED_TO_MOVE:
        return evaluate(s1)
    replies = legal_moves(s1, rules)
    if not replies:
        return evaluate(s1)
    best = None
    for r in replies:
        s2 = s1.clone()
        apply_move(s2, r[0], r[1], Cell.RED, rules)
        score = evaluate(s2)
        if best is None or score > best:
            best = score
    return best


def best_move_for_blue(
    state: GameState, moves: Sequence[Move], rules: Rules = CANONICAL_RULES
) -> Move:
    """Blue move minimising Red's best reply; first in generator order on ties."""
    if not moves:
        raise ValueError("No legal moves available")
    best_move = moves[0]
    best_score = None
    for move in moves:
        score = _adversarial_score(state, move, rules)
        if best_score is None or score < best_score:
            best_score, best_move = score, move
    return best_move


def explain(state: GameState, move: Move, rules: Rules = CANONICAL_RULES) -> str:
    """Classify a Blue move, checked from the most to the least forcing reason."""
    board_idx, cell_idx = move
    cells = state.cells[board_idx]
    winners = state.board_winners
    undecided = not state.is_decided(board_idx)

    wins_board = undecided and would_win_board(cells, cell_idx, Cell.BLUE)
    if wins_board:
        if would_win_meta(winners, board_idx, Cell.BLUE):
            return WINS_GAME
        if creates_meta_threat(winners, board_idx, Cell.BLUE):
            return WINS_BOARD_AND_THREATENS
        return WINS_BOARD

    if undecided and would_win_board(cells, cell_idx, Cell.RED):
        return BLOCKS_BOARD

    if creates_meta_threat(winners, board_idx, Cell.BLUE):
        return THREATENS_GAME

    if undecided and creates_fork(cells, cell_idx, Cell.BLUE):
        return CREATES_FORK

    if not is_live_board(state, cell_idx, rules):
        return FREE_CHOICE

    return POSITIONAL
