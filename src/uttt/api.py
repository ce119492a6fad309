"""FastAPI transport for the engine.

Every route is stateless: the client sends the state it holds, the server
answers with the next state. Nothing is stored between requests.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import logging
import random

from fastapi import FastAPI

from . import engine
from .config import Settings
from .schema import (
    HintRequest,
    HintResponse,
    MoveRequest,
    MoveResponse,
    dump_state,
)

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    rules = settings.rules

    app = FastAPI(
        title="Ultimate Tic-Tac-Toe",
        description="Stateless rules engine and computer opponent",
    )
    app.state.settings = settings

    def _rng() -> random.Random:
        # Per-request generator; seeded runs replay identically
        return random.Random(settings.seed)

    @app.post("/api/new")
    def new_game() -> Dict[str, Any]:
        return dump_state(engine.new_game())

    @app.post("/api/move")
    def make_move(request: MoveRequest) -> Dict[str, Any]:
        level = settings.default_level if request.level is None else request.level
        result = engine.make_move(
            request.state.to_state(),
            request.board_idx,
            request.cell_idx,
            player_is_blue=True,
            level=level,
            rng=_rng(),
            rules=rules,
        )
        if not result.ok:
            logger.info(
                "move (%d, %d) rejected: %s",
                request.board_idx,
                request.cell_idx,
                result.error,
            )
        payload = MoveResponse.from_result(result).model_dump(mode="json")
        if payload["error"] is None:
            del payload["error"]
        return payload

    @app.post("/api/hint", response_model=HintResponse)
    def get_hint(request: HintRequest) -> HintResponse:
        hint = engine.get_hint(request.state.to_state(), rules=rules)
        return HintResponse.from_hint(hint)

    @app.get("/api/health")
    def health() -> Dict[str, object]:
        return {
            "status": "ok",
            "defaultLevel": settings.default_level,
            "rules": {"lockDecidedBoards": rules.lock_decided_boards},
        }

    return app


app = create_app(Settings.from_env())
