"""Graduated computer opponent: tactical predicates, evaluator and a staged move filter.

Red is always the computer. Strength runs from level 0 (beginner friendly) to
level 21 (two-ply minimax). Levels 2..19 are served by ``PIPELINE``, an ordered
table of named filter stages, each switched on from its ``min_level``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple
import logging
import random

from .game import (
    CANONICAL_RULES,
    WIN_LINES,
    Cell,
    GameState,
    GameStatus,
    Move,
    Rules,
    apply_move,
    check_winner,
    is_live_board,
    legal_moves,
)

logger = logging.getLogger(__name__)

MIN_LEVEL = 0
MAX_LEVEL = 21
ONE_PLY_LEVEL = 20
TWO_PLY_LEVEL = 21

CENTER = 4
CORNERS = (0, 2, 6, 8)

META_WIN_SCORE = 10_000


# ---------- Tactical predicates ----------


def would_win_board(cells: Sequence[Cell], cell_idx: int, player: Cell) -> bool:
    """Placing ``player`` at ``cell_idx`` completes a line on this sub-board."""
    test = list(cells)
    test[cell_idx] = player
    return check_winner(test) is player


def would_win_meta(
    board_winners: Sequence[Cell], board_idx: int, player: Cell
) -> bool:
    test = list(board_winners)
    test[board_idx] = player
    return check_winner(test) is player


def creates_meta_threat(
    board_winners: Sequence[Cell], board_idx: int, player: Cell
) -> bool:
    """Capturing ``board_idx`` leaves a meta-line through it at two-plus-empty."""
    test = list(board_winners)
    test[board_idx] = player
    for line in WIN_LINES:
        if board_idx not in line:
            continue
        trio = [test[i] for i in line]
        if trio.count(player) == 2 and trio.count(Cell.EMPTY) == 1:
            return True
    return False


def creates_fork(cells: Sequence[Cell], cell_idx: int, player: Cell) -> bool:
    """After placing, at least two empty cells would each win the sub-board."""
    test = list(cells)
    test[cell_idx] = player
    threats = 0
    for i, c in enumerate(test):
        if c is Cell.EMPTY and would_win_board(test, i, player):
            threats += 1
    return threats >= 2


def has_winning_cell(cells: Sequence[Cell], player: Cell) -> bool:
    return any(
        c is Cell.EMPTY and would_win_board(cells, i, player)
        for i, c in enumerate(cells)
    )


def has_fork_cell(cells: Sequence[Cell], player: Cell) -> bool:
    return any(
        c is Cell.EMPTY and creates_fork(cells, i, player)
        for i, c in enumerate(cells)
    )


# ---------- Evaluation ----------


def evaluate(state: GameState) -> int:
    """Static score of a position; positive favours Red, negative Blue."""
    winners = state.board_winners

    meta = check_winner(winners)
    if meta is Cell.RED:
        return META_WIN_SCORE
    if meta is Cell.BLUE:
        return -META_WIN_SCORE

    score = 0
    for w in winners:
        if w is Cell.RED:
            score += 100
        elif w is Cell.BLUE:
            score -= 100

    # Open meta-lines; a line holding both colours is blocked
    for line in WIN_LINES:
        trio = [winners[i] for i in line]
        red = trio.count(Cell.RED)
        blue = trio.count(Cell.BLUE)
        if blue == 0:
            if red == 2:
                score += 50
            elif red == 1:
                score += 10
        if red == 0:
            if blue == 2:
                score -= 50
            elif blue == 1:
                score -= 10

    if winners[CENTER] is Cell.RED:
        score += 5
    elif winners[CENTER] is Cell.BLUE:
        score -= 5

    for b in range(9):
        if winners[b] is not Cell.EMPTY:
            continue
        center = state.cells[b][CENTER]
        if center is Cell.RED:
            score += 1
        elif center is Cell.BLUE:
            score -= 1

    return score


# ---------- Pipeline ----------


@dataclass
class SearchContext:
    """What a stage may look at: the position and the rule variant in force."""

    state: GameState
    rules: Rules = CANONICAL_RULES

    def grants_free_choice(self, board_idx: int) -> bool:
        return not is_live_board(self.state, board_idx, self.rules)

    def empty_count(self, board_idx: int) -> int:
        if self.grants_free_choice(board_idx):
            return 0
        return self.state.cells[board_idx].count(Cell.EMPTY)


Selector = Callable[[SearchContext, List[Move]], List[Move]]


@dataclass(frozen=True)
class Tier:
    """Preferred subset of a committing stage's result."""

    name: str
    min_level: int
    select: Selector


@dataclass(frozen=True)
class Stage:
    """
    One named filter of the move cascade.

    A narrowing stage replaces the candidate pool with its result whenever the
    result is non-empty. A committing stage ends the cascade as soon as its
    result is non-empty: the first active tier that yields something narrows
    the result further, then a move is drawn at random from it.
    """

    name: str
    min_level: int
    select: Selector
    commit: bool = False
    tiers: Tuple[Tier, ...] = ()
    max_level: int = MAX_LEVEL

    def active(self, level: int) -> bool:
        return self.min_level <= level <= self.max_level


def _wins_undecided_board(ctx: SearchContext, b: int, c: int, player: Cell) -> bool:
    state = ctx.state
    return not state.is_decided(b) and would_win_board(state.cells[b], c, player)


def _non_winning(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [
        (b, c) for b, c in pool if not would_win_board(ctx.state.cells[b], c, Cell.RED)
    ]


def _winning(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [(b, c) for b, c in pool if _wins_undecided_board(ctx, b, c, Cell.RED)]


def _meta_winning(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [
        (b, c) for b, c in pool if would_win_meta(ctx.state.board_winners, b, Cell.RED)
    ]


def _defending(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    # Taking the board also kills Blue's pending win on it
    return [(b, c) for b, c in pool if has_winning_cell(ctx.state.cells[b], Cell.BLUE)]


def _meta_threatening(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [
        (b, c)
        for b, c in pool
        if creates_meta_threat(ctx.state.board_winners, b, Cell.RED)
    ]


def _blocking(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [(b, c) for b, c in pool if _wins_undecided_board(ctx, b, c, Cell.BLUE)]


def _meta_blocking(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [
        (b, c)
        for b, c in pool
        if would_win_meta(ctx.state.board_winners, b, Cell.BLUE)
    ]


def _fork_points(player: Cell) -> Selector:
    def select(ctx: SearchContext, pool: List[Move]) -> List[Move]:
        state = ctx.state
        return [
            (b, c)
            for b, c in pool
            if not state.is_decided(b) and creates_fork(state.cells[b], c, player)
        ]

    return select


def _safe_destinations(unsafe: Callable[[SearchContext, int], bool]) -> Selector:
    """Keep moves whose destination grants free choice or is not ``unsafe``."""

    def select(ctx: SearchContext, pool: List[Move]) -> List[Move]:
        return [
            (b, c)
            for b, c in pool
            if ctx.grants_free_choice(c)
            or ctx.state.is_decided(c)
            or not unsafe(ctx, c)
        ]

    return select


def _blue_outnumbers(ctx: SearchContext, dest: int) -> bool:
    cells = ctx.state.cells[dest]
    return cells.count(Cell.BLUE) > cells.count(Cell.RED)


def _blue_can_win(ctx: SearchContext, dest: int) -> bool:
    return has_winning_cell(ctx.state.cells[dest], Cell.BLUE)


def _blue_can_fork(ctx: SearchContext, dest: int) -> bool:
    return has_fork_cell(ctx.state.cells[dest], Cell.BLUE)


def _meta_pair_through(player: Cell) -> Callable[[SearchContext, int], bool]:
    def unsafe(ctx: SearchContext, dest: int) -> bool:
        winners = ctx.state.board_winners
        return any(
            dest in line and sum(1 for i in line if winners[i] is player) == 2
            for line in WIN_LINES
        )

    return unsafe


def _blue_meta_progress(ctx: SearchContext, dest: int) -> bool:
    winners = ctx.state.board_winners
    return would_win_meta(winners, dest, Cell.BLUE) or creates_meta_threat(
        winners, dest, Cell.BLUE
    )


def _trapping(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    """Send Blue into a board with one empty cell whose index is a board Red can win."""
    state = ctx.state
    out: List[Move] = []
    for b, c in pool:
        if ctx.grants_free_choice(c):
            continue
        empties = [i for i, cell in enumerate(state.cells[c]) if cell is Cell.EMPTY]
        if len(empties) != 1:
            continue
        forced = empties[0]
        if state.is_decided(forced):
            continue
        if has_winning_cell(state.cells[forced], Cell.RED):
            out.append((b, c))
    return out


def _empty_destinations(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    return [(b, c) for b, c in pool if ctx.empty_count(c) == 9]


def _roomiest_destinations(ctx: SearchContext, pool: List[Move]) -> List[Move]:
    if not pool:
        return []
    most = max(ctx.empty_count(c) for _, c in pool)
    return [(b, c) for b, c in pool if ctx.empty_count(c) == most]


def _prefer_squares(squares: Tuple[int, ...]) -> Selector:
    """Cell and board both on ``squares``, else cell on them, else board on them."""

    def select(ctx: SearchContext, pool: List[Move]) -> List[Move]:
        by_cell = [(b, c) for b, c in pool if c in squares]
        if by_cell:
            both = [(b, c) for b, c in by_cell if b in squares]
            return both or by_cell
        return [(b, c) for b, c in pool if b in squares]

    return select


_prefer_center = _prefer_squares((CENTER,))
_prefer_corners = _prefer_squares(CORNERS)

CENTER_TIER = Tier("prefer_center", 14, _prefer_center)
CORNER_TIER = Tier("prefer_corners", 15, _prefer_corners)


PIPELINE: Tuple[Stage, ...] = (
    Stage("avoid_board_wins", 0, _non_winning, max_level=0),
    Stage(
        "win_board",
        2,
        _winning,
        commit=True,
        tiers=(
            Tier("win_meta", 12, _meta_winning),
            Tier("win_and_defend", 11, _defending),
            Tier("win_with_meta_threat", 16, _meta_threatening),
        ),
    ),
    Stage(
        "block_board",
        3,
        _blocking,
        commit=True,
        tiers=(Tier("block_meta", 13, _meta_blocking),),
    ),
    Stage("block_fork", 4, _fork_points(Cell.BLUE), commit=True),
    Stage("create_fork", 19, _fork_points(Cell.RED), commit=True),
    Stage("outnumbered_destination", 7, _safe_destinations(_blue_outnumbers)),
    Stage("deny_board_win", 8, _safe_destinations(_blue_can_win)),
    Stage("deny_fork", 9, _safe_destinations(_blue_can_fork)),
    Stage("deny_meta_pair", 17, _safe_destinations(_meta_pair_through(Cell.BLUE))),
    Stage("guard_meta_pair", 17, _safe_destinations(_meta_pair_through(Cell.RED))),
    Stage("deny_meta_progress", 18, _safe_destinations(_blue_meta_progress)),
    Stage("trap", 10, _trapping, commit=True),
    Stage(
        "empty_destination",
        5,
        _empty_destinations,
        commit=True,
        tiers=(CENTER_TIER, CORNER_TIER),
    ),
    Stage(
        "roomiest_destination",
        6,
        _roomiest_destinations,
        commit=True,
        tiers=(CENTER_TIER, CORNER_TIER),
    ),
)

_STAGES_BY_NAME = {s.name: s for s in PIPELINE}


def get_stage(name: str) -> Stage:
    return _STAGES_BY_NAME[name]


def run_pipeline(
    ctx: SearchContext,
    moves: Sequence[Move],
    level: int,
    rng: random.Random,
    stages: Sequence[Stage] = PIPELINE,
) -> Move:
    """Run every active stage in order and pick uniformly among the survivors."""
    pool = list(moves)
    for stage in stages:
        if not stage.active(level):
            continue
        chosen = stage.select(ctx, pool)
        if not chosen:
            continue
        if not stage.commit:
            pool = chosen
            continue
        for tier in stage.tiers:
            if level < tier.min_level:
                continue
            preferred = tier.select(ctx, chosen)
            if preferred:
                logger.debug("stage %s fired via tier %s", stage.name, tier.name)
                return rng.choice(preferred)
        logger.debug("stage %s fired with %d candidates", stage.name, len(chosen))
        return rng.choice(chosen)
    return rng.choice(pool)


# ---------- Lookahead ----------


def _best_of(scored: List[Tuple[int, Move]], rng: random.Random) -> Move:
    best = max(score for score, _ in scored)
    top = [move for score, move in scored if score == best]
    logger.debug("best score %d shared by %d of %d moves", best, len(top), len(scored))
    return rng.choice(top)


def _after(state: GameState, move: Move, player: Cell, rules: Rules) -> GameState:
    child = state.clone()
    apply_move(child, move[0], move[1], player, rules)
    return child


def best_move_one_ply(
    state: GameState,
    moves: Sequence[Move],
    rng: random.Random,
    rules: Rules = CANONICAL_RULES,
) -> Move:
    scored = [(evaluate(_after(state, m, Cell.RED, rules)), m) for m in moves]
    return _best_of(scored, rng)


def reply_score(state: GameState, move: Move, rules: Rules = CANONICAL_RULES) -> int:
    """Score of a Red move assuming Blue answers with the reply worst for Red."""
    s1 = _after(state, move, Cell.RED, rules)
    if s1.status is not GameStatus.BLUE_TO_MOVE:
        return evaluate(s1)
    replies = legal_moves(s1, rules)
    if not replies:
        return evaluate(s1)
    return min(evaluate(_after(s1, r, Cell.BLUE, rules)) for r in replies)


def best_move_two_ply(
    state: GameState,
    moves: Sequence[Move],
    rng: random.Random,
    rules: Rules = CANONICAL_RULES,
) -> Move:
    scored = [(reply_score(state, m, rules), m) for m in moves]
    return _best_of(scored, rng)


# ---------- Player ----------


@dataclass
class ComputerPlayer:
    """Red opponent at a fixed strength level.

    ``rng`` drives every tie-break; pass ``random.Random(seed)`` for
    reproducible play.
    """

    level: int = MAX_LEVEL
    rng: Optional[random.Random] = field(default_factory=random.Random, repr=False)
    rules: Rules = CANONICAL_RULES

    def __post_init__(self) -> None:
        if self.level < MIN_LEVEL:
            raise ValueError(f"Level must be at least {MIN_LEVEL}, got {self.level}")
        if self.rng is None:
            self.rng = random.Random()

    def choose(self, state: GameState) -> Move:
        if state.status is not GameStatus.RED_TO_MOVE:
            raise ValueError("It is not the computer's turn")
        moves = legal_moves(state, self.rules)
        if not moves:
            raise ValueError("No legal moves available")

        if self.level >= TWO_PLY_LEVEL:
            move = best_move_two_ply(state, moves, self.rng, self.rules)
        elif self.level >= ONE_PLY_LEVEL:
            move = best_move_one_ply(state, moves, self.rng, self.rules)
        else:
            ctx = SearchContext(state=state, rules=self.rules)
            move = run_pipeline(ctx, moves, self.level, self.rng)
        logger.debug("level %d chose %s from %d moves", self.level, move, len(moves))
        return move

    def play(self, state: GameState) -> Optional[Move]:
        """Choose and apply Red's move in place; no-op unless Red is to move."""
        if state.status is not GameStatus.RED_TO_MOVE:
            return None
        if not legal_moves(state, self.rules):
            return None
        move = self.choose(state)
        apply_move(state, move[0], move[1], Cell.RED, self.rules)
        return move
