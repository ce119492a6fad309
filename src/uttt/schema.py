"""Wire models for moving game states across the HTTP boundary.

Field names and the lowercase ``Cell``/``GameStatus`` tokens are the public
format; clients round-trip the state they receive unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .ai import MAX_LEVEL, MIN_LEVEL
from .engine import Hint, MoveResult
from .game import Cell, GameState, GameStatus


class GameStateModel(BaseModel):
    """Serialized ``GameState``; last moves travel as ``[board, cell]`` pairs."""

    cells: List[List[Cell]] = Field(min_length=9, max_length=9)
    board_winners: List[Cell] = Field(min_length=9, max_length=9)
    board_full: List[bool] = Field(min_length=9, max_length=9)
    required_board: Optional[int] = Field(default=None, ge=0, le=8)
    status: GameStatus = GameStatus.BLUE_TO_MOVE
    last_blue: Optional[Tuple[int, int]] = None
    last_red: Optional[Tuple[int, int]] = None

    @field_validator("cells")
    @classmethod
    def ensure_nine_by_nine(cls, value: List[List[Cell]]) -> List[List[Cell]]:
        for index, board in enumerate(value):
            if len(board) != 9:
                raise ValueError(f"Sub-board {index} has {len(board)} cells, not 9")
        return value

    @field_validator("last_blue", "last_red")
    @classmethod
    def ensure_move_in_range(
        cls, value: Optional[Tuple[int, int]]
    ) -> Optional[Tuple[int, int]]:
        if value is not None and not all(0 <= i < 9 for i in value):
            raise ValueError(f"Move {list(value)} is outside the 9x9 grid")
        return value

    @classmethod
    def from_state(cls, state: GameState) -> "GameStateModel":
        return cls(
            cells=[list(board) for board in state.cells],
            board_winners=list(state.board_winners),
            board_full=list(state.board_full),
            required_board=state.required_board,
            status=state.status,
            last_blue=state.last_blue,
            last_red=state.last_red,
        )

    def to_state(self) -> GameState:
        return GameState(
            cells=[list(board) for board in self.cells],
            board_winners=list(self.board_winners),
            board_full=list(self.board_full),
            required_board=self.required_board,
            status=self.status,
            last_blue=self.last_blue,
            last_red=self.last_red,
        )


def dump_state(state: GameState) -> Dict[str, Any]:
    """JSON-ready dict using the lowercase wire tokens."""
    return GameStateModel.from_state(state).model_dump(mode="json")


def load_state(data: Dict[str, Any]) -> GameState:
    """Inverse of ``dump_state``; raises ``pydantic.ValidationError`` on bad input."""
    return GameStateModel.model_validate(data).to_state()


class MoveRequest(BaseModel):
    """Request payload for a human (Blue) move on a client-held state."""

    state: GameStateModel
    # Range is checked by the engine so it can answer "Invalid indices"
    board_idx: int = Field(ge=0)
    cell_idx: int = Field(ge=0)
    level: Optional[int] = Field(
        default=None,
        ge=MIN_LEVEL,
        le=MAX_LEVEL,
        description="Computer strength; the server default is used when omitted",
    )


class HintRequest(BaseModel):
    state: GameStateModel


class MoveResponse(BaseModel):
    ok: bool
    state: GameStateModel
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: MoveResult) -> "MoveResponse":
        return cls(
            ok=result.ok,
            state=GameStateModel.from_state(result.state),
            error=result.error,
        )


class HintResponse(BaseModel):
    board_idx: int
    cell_idx: int
    explanation: str

    @classmethod
    def from_hint(cls, hint: Hint) -> "HintResponse":
        return cls(
            board_idx=hint.board_idx,
            cell_idx=hint.cell_idx,
            explanation=hint.explanation,
        )
