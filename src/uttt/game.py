"""Core rules for Ultimate Tic-Tac-Toe: state, win detection and move generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

Move = Tuple[int, int]  # (board_idx, cell_idx)

WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Cell(str, Enum):
    """Occupant of a cell, or the owner of a decided sub-board."""

    EMPTY = "empty"
    BLUE = "blue"
    RED = "red"


class GameStatus(str, Enum):
    BLUE_TO_MOVE = "bluetomove"
    RED_TO_MOVE = "redtomove"
    BLUE_WINS = "bluewins"
    RED_WINS = "redwins"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.BLUE_WINS, GameStatus.RED_WINS, GameStatus.DRAW)


# ---------- Rule variants ----------


@dataclass(frozen=True)
class Rules:
    """
    Rule variant switch.

    With ``lock_decided_boards`` a won sub-board is closed: nobody plays in it
    again and sending a player there grants free choice. Without it, play
    continues inside won sub-boards until they fill up, and only a full
    target board releases the required-board constraint. The winner of a
    sub-board is recorded once in both variants.
    """

    lock_decided_boards: bool = True


CANONICAL_RULES = Rules()
LENIENT_RULES = Rules(lock_decided_boards=False)


# ---------- State ----------


def _empty_cells() -> List[List[Cell]]:
    return [[Cell.EMPTY] * 9 for _ in range(9)]


@dataclass
class GameState:
    cells: List[List[Cell]] = field(default_factory=_empty_cells)
    board_winners: List[Cell] = field(default_factory=lambda: [Cell.EMPTY] * 9)
    board_full: List[bool] = field(default_factory=lambda: [False] * 9)
    # None means free choice among all open sub-boards
    required_board: Optional[int] = None
    status: GameStatus = GameStatus.BLUE_TO_MOVE
    # UI highlighting only; the engine never reads these
    last_blue: Optional[Move] = None
    last_red: Optional[Move] = None

    def clone(self) -> "GameState":
        return GameState(
            cells=[board.copy() for board in self.cells],
            board_winners=self.board_winners.copy(),
            board_full=self.board_full.copy(),
            required_board=self.required_board,
            status=self.status,
            last_blue=self.last_blue,
            last_red=self.last_red,
        )

    @property
    def to_move(self) -> Cell:
        """Colour whose turn it is, EMPTY once the game is over."""
        if self.status is GameStatus.BLUE_TO_MOVE:
            return Cell.BLUE
        if self.status is GameStatus.RED_TO_MOVE:
            return Cell.RED
        return Cell.EMPTY

    def is_decided(self, board_idx: int) -> bool:
        return self.board_winners[board_idx] is not Cell.EMPTY


def new_game() -> GameState:
    """Fresh position: every cell empty, Blue to move anywhere."""
    return GameState()


# ---------- Win detection ----------


def check_winner(cells: Sequence[Cell]) -> Cell:
    """Colour of the first completed line in ``WIN_LINES`` order, else EMPTY.

    Works for a sub-board's cells and for the meta-board (``board_winners``).
    """
    for a, b, c in WIN_LINES:
        v = cells[a]
        if v is not Cell.EMPTY and v == cells[b] == cells[c]:
            return v
    return Cell.EMPTY


def is_board_full(cells: Sequence[Cell]) -> bool:
    return all(c is not Cell.EMPTY for c in cells)


def is_meta_dead(board_winners: Sequence[Cell]) -> bool:
    """True when every meta-line already holds both colours, so nobody can win."""
    for line in WIN_LINES:
        owners = {board_winners[i] for i in line}
        if not (Cell.BLUE in owners and Cell.RED in owners):
            return False
    return True


def is_live_board(
    state: GameState, board_idx: int, rules: Rules = CANONICAL_RULES
) -> bool:
    """Whether ``board_idx`` can still receive a stone under ``rules``."""
    if state.board_full[board_idx]:
        return False
    if rules.lock_decided_boards and state.is_decided(board_idx):
        return False
    return True


# ---------- Transition ----------


def apply_move(
    state: GameState,
    board_idx: int,
    cell_idx: int,
    player: Cell,
    rules: Rules = CANONICAL_RULES,
) -> None:
    """Commit ``player`` at (board_idx, cell_idx) and recompute derived fields.

    The caller validates legality first; nothing is re-checked here.
    """
    board = state.cells[board_idx]
    board[cell_idx] = player

    # A sub-board winner is locked on first detection
    if state.board_winners[board_idx] is Cell.EMPTY:
        winner = check_winner(board)
        if winner is not Cell.EMPTY:
            state.board_winners[board_idx] = winner
    state.board_full[board_idx] = is_board_full(board)

    if player is Cell.BLUE:
        state.last_blue = (board_idx, cell_idx)
    elif player is Cell.RED:
        state.last_red = (board_idx, cell_idx)

    # Cell index names the opponent's next board unless it is closed
    state.required_board = cell_idx if is_live_board(state, cell_idx, rules) else None

    state.status = _resolve_status(state, player)


def _resolve_status(state: GameState, mover: Cell) -> GameStatus:
    meta_winner = check_winner(state.board_winners)
    if meta_winner is Cell.BLUE:
        return GameStatus.BLUE_WINS
    if meta_winner is Cell.RED:
        return GameStatus.RED_WINS

    all_resolved = all(
        winner is not Cell.EMPTY or full
        for winner, full in zip(state.board_winners, state.board_full)
    )
    if all_resolved or is_meta_dead(state.board_winners):
        return GameStatus.DRAW

    if mover is Cell.BLUE:
        return GameStatus.RED_TO_MOVE
    if mover is Cell.RED:
        return GameStatus.BLUE_TO_MOVE
    return state.status


# ---------- Move generation ----------


def legal_moves(state: GameState, rules: Rules = CANONICAL_RULES) -> List[Move]:
    """All playable (board_idx, cell_idx) pairs, board-major ascending."""
    if state.status.is_terminal:
        return []

    if state.required_board is not None:
        boards: Sequence[int] = (state.required_board,)
    else:
        boards = [i for i in range(9) if is_live_board(state, i, rules)]

    moves: List[Move] = []
    for i in boards:
        for j, c in enumerate(state.cells[i]):
            if c is Cell.EMPTY:
                moves.append((i, j))
    return moves
