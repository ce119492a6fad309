"""Tests for the graduated computer opponent."""

import random

import pytest

from uttt.ai import (
    CENTER_TIER,
    CORNER_TIER,
    ComputerPlayer,
    SearchContext,
    Stage,
    creates_fork,
    creates_meta_threat,
    evaluate,
    get_stage,
    reply_score,
    run_pipeline,
    would_win_board,
    would_win_meta,
)
from uttt.game import (
    Cell,
    GameState,
    GameStatus,
    apply_move,
    legal_moves,
    new_game,
)

B, R, E = Cell.BLUE, Cell.RED, Cell.EMPTY
SEEDS = range(25)


def _won(state: GameState, board: int, player: Cell) -> None:
    state.cells[board][0:3] = [player] * 3
    state.board_winners[board] = player


def _red_to_move(required=None) -> GameState:
    game = new_game()
    game.status = GameStatus.RED_TO_MOVE
    game.required_board = required
    return game


def _choices(game: GameState, level: int):
    return {
        ComputerPlayer(level=level, rng=random.Random(seed)).choose(game)
        for seed in SEEDS
    }


# ---------- predicates ----------


def test_would_win_board_for_two_in_a_line():
    cells = [R, R, E, B, E, E, E, E, E]
    assert would_win_board(cells, 2, R)
    assert not would_win_board(cells, 2, B)
    assert not would_win_board(cells, 5, R)


def test_would_win_meta_and_threat():
    winners = [R, R, E, E, B, E, E, E, E]
    assert would_win_meta(winners, 2, R)
    assert not would_win_meta(winners, 2, B)
    assert not would_win_meta(winners, 8, R)

    assert creates_meta_threat(winners, 6, R)  # column 0, 3, 6
    assert not creates_meta_threat(winners, 8, R)  # diagonal blocked by blue
    assert creates_meta_threat(winners, 5, B)  # row 3, 4, 5
    assert not creates_meta_threat([E] * 9, 4, B)


def test_creates_fork():
    cells = [R, E, E, E, B, E, E, E, R]
    assert creates_fork(cells, 2, R)
    assert creates_fork(cells, 6, R)
    assert not creates_fork(cells, 1, R)
    assert not creates_fork(cells, 2, B)


# ---------- evaluator ----------


def test_evaluate_empty_position_is_neutral():
    assert evaluate(new_game()) == 0


def test_evaluate_meta_win_shortcut():
    game = new_game()
    for board in (2, 4, 6):
        _won(game, board, R)
    assert evaluate(game) == 10_000

    game = new_game()
    for board in (0, 3, 6):
        _won(game, board, B)
    assert evaluate(game) == -10_000


def test_evaluate_board_and_line_weights():
    game = new_game()
    _won(game, 0, R)
    # one board, three open lines through the corner
    assert evaluate(game) == 100 + 3 * 10

    _won(game, 1, R)
    # row 0 now holds two; column 1 adds a single
    assert evaluate(game) == 200 + 50 + 10 + 10 + 10


def test_evaluate_blocked_lines_and_center():
    game = new_game()
    _won(game, 0, R)
    _won(game, 1, B)
    assert evaluate(game) == 10 + 10 - 10

    game = new_game()
    _won(game, 4, B)
    assert evaluate(game) == -100 - 4 * 10 - 5


def test_evaluate_center_cells_of_open_boards():
    game = new_game()
    game.cells[3][4] = R
    game.cells[5][4] = R
    game.cells[7][4] = B
    assert evaluate(game) == 1

    _won(game, 3, B)
    # decided boards no longer count their centre cell
    assert evaluate(game) == -100 - 2 * 10 + 0


# ---------- cascade by level ----------


def test_level_zero_avoids_winning_a_board():
    game = _red_to_move(required=0)
    game.cells[0] = [R, R, E, B, B, E, E, E, E]
    choices = _choices(game, 0)
    assert (0, 2) not in choices
    assert choices <= set(legal_moves(game))


def test_level_zero_falls_back_when_every_move_wins():
    game = _red_to_move(required=0)
    game.cells[0] = [R, R, E, B, B, R, R, B, B]
    assert legal_moves(game) == [(0, 2)]
    assert _choices(game, 0) == {(0, 2)}


def test_level_one_is_uniform_random():
    game = _red_to_move(required=0)
    game.cells[0] = [R, R, E, B, B, E, E, E, E]
    choices = _choices(game, 1)
    assert choices <= set(legal_moves(game))
    assert len(choices) > 1


def test_level_two_takes_a_board():
    game = _red_to_move(required=0)
    game.cells[0] = [R, R, E, B, B, E, E, E, E]
    assert _choices(game, 2) == {(0, 2)}


def test_level_three_blocks_blue():
    game = _red_to_move(required=0)
    game.cells[0] = [B, B, E, R, E, E, E, E, E]
    assert _choices(game, 3) == {(0, 2)}


def test_level_twelve_prefers_the_winning_board():
    game = _red_to_move()
    _won(game, 1, R)
    _won(game, 2, R)
    game.cells[0] = [E, E, E, R, E, E, R, E, E]
    game.cells[5] = [R, R, E, E, E, E, E, E, E]
    assert _choices(game, 12) == {(0, 0)}


def test_level_eleven_prefers_a_defending_win():
    game = _red_to_move()
    game.cells[0] = [R, R, E, E, E, E, E, E, E]
    game.cells[5] = [R, R, E, B, B, E, E, E, E]
    assert _choices(game, 11) == {(5, 2)}
    assert _choices(game, 10) == {(0, 2), (5, 2)}


def test_level_sixteen_prefers_a_meta_threat():
    game = _red_to_move()
    _won(game, 1, R)
    game.cells[0] = [R, R, E, E, E, E, E, E, E]
    game.cells[8] = [R, R, E, E, E, E, E, E, E]
    assert _choices(game, 16) == {(0, 2)}


def test_level_thirteen_blocks_blues_meta_win():
    game = _red_to_move()
    _won(game, 1, B)
    _won(game, 2, B)
    game.cells[0] = [E, B, B, E, E, E, E, E, E]
    game.cells[5] = [B, B, E, E, E, E, E, E, E]
    assert _choices(game, 13) == {(0, 0)}


def test_level_four_takes_blues_fork_point():
    game = _red_to_move(required=0)
    game.cells[0] = [B, E, E, E, R, E, E, E, B]
    assert _choices(game, 4) == {(0, 2), (0, 6)}


def test_level_nineteen_creates_its_own_fork():
    game = _red_to_move(required=0)
    game.cells[0] = [R, E, E, E, B, E, E, E, R]
    assert _choices(game, 19) == {(0, 2), (0, 6)}


def test_level_fourteen_sends_blue_to_the_empty_center():
    game = new_game()
    apply_move(game, 0, 0, B)
    assert _choices(game, 14) == {(0, 4)}


def test_level_five_sends_blue_to_an_empty_board():
    game = new_game()
    apply_move(game, 0, 0, B)
    game.cells[3][0] = B
    game.cells[6][8] = R
    choices = _choices(game, 5)
    assert choices
    assert all(cell not in (0, 3, 6) for _, cell in choices)


def test_level_twenty_maximises_the_evaluation():
    game = _red_to_move(required=0)
    _won(game, 1, R)
    _won(game, 2, R)
    game.cells[0] = [E, E, E, R, E, E, R, E, E]
    assert _choices(game, 20) == {(0, 0)}


def test_level_twenty_one_takes_the_game():
    game = _red_to_move(required=0)
    _won(game, 1, R)
    _won(game, 2, R)
    game.cells[0] = [E, E, E, R, E, E, R, E, E]
    assert reply_score(game, (0, 0)) == 10_000
    assert all(reply_score(game, m) < 10_000 for m in legal_moves(game) if m != (0, 0))
    assert _choices(game, 21) == {(0, 0)}


def test_level_twenty_one_never_hands_blue_the_game():
    game = _red_to_move(required=0)
    _won(game, 3, B)
    _won(game, 4, B)
    game.cells[5] = [B, B, E, E, E, E, E, E, E]

    # board 5 directly, boards 3 and 4 via free choice
    for losing in ((0, 3), (0, 4), (0, 5)):
        assert reply_score(game, losing) == -10_000
    choices = _choices(game, 21)
    assert choices
    assert not choices & {(0, 3), (0, 4), (0, 5)}


def test_seeded_choice_is_reproducible():
    game = new_game()
    apply_move(game, 4, 4, B)
    first = ComputerPlayer(level=1, rng=random.Random(42)).choose(game)
    second = ComputerPlayer(level=1, rng=random.Random(42)).choose(game)
    assert first == second


def test_choose_requires_reds_turn():
    with pytest.raises(ValueError):
        ComputerPlayer(level=5).choose(new_game())


def test_rejects_negative_level():
    with pytest.raises(ValueError):
        ComputerPlayer(level=-1)


def test_play_applies_red_move_in_place():
    game = new_game()
    apply_move(game, 4, 4, B)
    move = ComputerPlayer(level=21, rng=random.Random(0)).play(game)

    assert move is not None
    assert move[0] == 4
    assert game.cells[move[0]][move[1]] is R
    assert game.last_red == move
    assert game.status is GameStatus.BLUE_TO_MOVE


def test_play_is_a_noop_when_not_reds_turn():
    game = new_game()
    assert ComputerPlayer(level=5).play(game) is None
    assert game == new_game()


# ---------- individual stages ----------


def _select(name: str, game: GameState, pool):
    return get_stage(name).select(SearchContext(state=game), list(pool))


def test_outnumbered_destination_stage():
    game = _red_to_move(required=0)
    game.cells[1][0] = B
    assert _select("outnumbered_destination", game, [(0, 1), (0, 2)]) == [(0, 2)]


def test_deny_board_win_stage():
    game = _red_to_move(required=0)
    game.cells[1] = [B, B, E, R, E, E, E, E, R]
    assert _select("deny_board_win", game, [(0, 1), (0, 3)]) == [(0, 3)]


def test_deny_board_win_treats_free_choice_as_safe():
    game = _red_to_move(required=0)
    game.cells[1] = [B, B, E, R, E, E, E, E, R]
    _won(game, 3, B)
    assert _select("deny_board_win", game, [(0, 1), (0, 3)]) == [(0, 3)]
    assert _select("deny_board_win", game, [(0, 1)]) == []


def test_deny_fork_stage():
    game = _red_to_move(required=0)
    game.cells[2] = [B, E, E, E, E, E, E, E, B]
    assert _select("deny_fork", game, [(0, 2), (0, 5)]) == [(0, 5)]


def test_meta_pair_stages():
    game = _red_to_move(required=0)
    _won(game, 3, B)
    _won(game, 4, B)
    assert _select("deny_meta_pair", game, [(0, 5), (0, 1)]) == [(0, 1)]

    game = _red_to_move(required=8)
    _won(game, 0, R)
    _won(game, 1, R)
    assert _select("guard_meta_pair", game, [(8, 2), (8, 5)]) == [(8, 5)]


def test_deny_meta_progress_stage():
    game = _red_to_move(required=2)
    _won(game, 0, B)
    pool = [(2, 1), (2, 8), (2, 5)]
    assert _select("deny_meta_progress", game, pool) == [(2, 5)]


def test_trap_stage():
    game = _red_to_move(required=0)
    game.cells[3] = [B, R, B, B, R, R, E, B, B]
    game.cells[6] = [R, R, E, E, E, E, E, E, E]
    assert _select("trap", game, [(0, 3), (0, 4)]) == [(0, 3)]


def test_destination_room_stages():
    game = _red_to_move(required=0)
    game.cells[1][0] = B
    game.cells[2][0:2] = [B, R]
    _won(game, 3, R)
    pool = [(0, 1), (0, 2), (0, 3), (0, 4)]
    assert _select("empty_destination", game, pool) == [(0, 4)]
    assert _select("roomiest_destination", game, pool[:3]) == [(0, 1)]


def test_center_and_corner_tiers():
    ctx = SearchContext(state=new_game())
    assert CENTER_TIER.select(ctx, [(0, 4), (1, 4), (4, 0), (4, 4)]) == [(4, 4)]
    assert CENTER_TIER.select(ctx, [(0, 4), (1, 4), (4, 0)]) == [(0, 4), (1, 4)]
    assert CENTER_TIER.select(ctx, [(4, 0), (0, 0)]) == [(4, 0)]
    assert CENTER_TIER.select(ctx, [(0, 0)]) == []

    assert CORNER_TIER.select(ctx, [(1, 2), (2, 2), (2, 1)]) == [(2, 2)]
    assert CORNER_TIER.select(ctx, [(1, 2), (2, 1)]) == [(1, 2)]
    assert CORNER_TIER.select(ctx, [(1, 1), (2, 1)]) == [(2, 1)]


def test_run_pipeline_keeps_pool_when_stage_empties_it():
    ctx = SearchContext(state=new_game())
    stages = (
        Stage("nothing", 0, lambda ctx, pool: []),
        Stage("evens", 0, lambda ctx, pool: [m for m in pool if m[1] % 2 == 0]),
        Stage("late", 5, lambda ctx, pool: [pool[0]], commit=True),
    )
    pool = [(0, 1), (0, 2), (0, 3), (0, 4)]
    for seed in SEEDS:
        move = run_pipeline(ctx, pool, 1, random.Random(seed), stages)
        assert move in ((0, 2), (0, 4))
    assert run_pipeline(ctx, pool, 5, random.Random(0), stages) == (0, 2)
