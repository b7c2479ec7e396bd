from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...config import EngineConfig
from ...engine.board import Color
from ...engine.game import PROMOTION_CHOICES, Game, IllegalMoveError
from ...engine.move import FullMove, Move, Position
from ...engine.perft import perft as perft_nodes
from ...search.service import SearchService


logger = logging.getLogger(__name__)

MAX_PERFT_DEPTH = 4


class CreateGameRequest(BaseModel):
    test_setup: Optional[bool] = Field(
        default=None, description="Start from the pawns/rooks/kings layout"
    )


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str
    to_move: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    x: int = Field(..., description="Origin column, 0..7")
    y: int = Field(..., description="Origin row, 0 is Black's back rank")
    dx: int
    dy: int
    promotion: Optional[str] = Field(default=None, description="One of q, r, b, n")


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1)


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=MAX_PERFT_DEPTH)


class GameState(BaseModel):
    game_id: str
    fen: str
    to_move: str
    board: str
    legal_move_count: int
    finished: bool
    draw: bool
    winner: Optional[str]
    ply: int
    history: List[str]


class SearchResponse(BaseModel):
    best_fen: Optional[str]
    score: int
    depth: int
    nodes: int
    cache_hits: int
    time_ms: int


def _color_name(color: Optional[Color]) -> Optional[str]:
    return color.name.lower() if color is not None else None


def _state(game_id: str, game: Game) -> GameState:
    status = game.status()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        to_move=_color_name(game.to_move),
        board=game.board.render(),
        legal_move_count=game.legal_move_count(),
        finished=status.finished,
        draw=status.draw,
        winner=_color_name(status.winner),
        ply=game.ply,
        history=[board.to_fen(color) for board, color in game.history],
    )


def create_app(config: Optional[EngineConfig] = None) -> FastAPI:
    config = config or EngineConfig.from_env()
    app = FastAPI(title="chessai", version="0.1.0")

    logging.basicConfig(level=config.log_level.upper())

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()

    def _depth(requested: Optional[int]) -> int:
        depth = requested if requested is not None else config.search_depth
        if depth > config.max_search_depth:
            raise HTTPException(
                status_code=400,
                detail=f"depth must be between 1 and {config.max_search_depth}",
            )
        return depth

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        test_setup = config.use_test_setup
        if req is not None and req.test_setup is not None:
            test_setup = req.test_setup
        game = Game.new(use_test_setup=test_setup)
        game_id = store.create(game)
        logger.info("game created", extra={"game_id": game_id, "test_setup": test_setup})
        return CreateGameResponse(
            game_id=game_id, fen=game.to_fen(), to_move=_color_name(game.to_move)
        )

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        with store.locked(game_id) as game:
            return _state(game_id, _require(game))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        with store.locked(game_id) as game:
            _require(game)
            try:
                new_game = Game.from_fen(req.fen)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
            store.set(game_id, new_game)
            return _state(game_id, new_game)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        promotion = None
        if req.promotion is not None:
            promotion = PROMOTION_CHOICES.get(req.promotion.lower())
            if promotion is None:
                raise HTTPException(
                    status_code=400, detail="promotion must be one of q, r, b, n"
                )
        full_move = FullMove(Position(req.x, req.y), Move(req.dx, req.dy))
        with store.locked(game_id) as game:
            game = _require(game)
            try:
                game.play(full_move, promotion)
            except IllegalMoveError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/search", response_model=SearchResponse)
    def search(game_id: str, req: Optional[SearchRequest] = None) -> SearchResponse:
        depth = _depth(req.depth if req is not None else None)
        with store.locked(game_id) as game:
            game = _require(game)
            res = SearchService().search(game.board, game.to_move, depth)
            best_fen = None
            if res.best_board is not None:
                best_fen = res.best_board.to_fen(game.to_move.other)
        return SearchResponse(
            best_fen=best_fen,
            score=res.score,
            depth=res.depth,
            nodes=res.nodes,
            cache_hits=res.cache_hits,
            time_ms=res.time_ms,
        )

    @app.post("/api/games/{game_id}/computer", response_model=GameState)
    def computer_move(game_id: str, req: Optional[SearchRequest] = None) -> GameState:
        depth = _depth(req.depth if req is not None else None)
        with store.locked(game_id) as game:
            game = _require(game)
            if game.status().finished:
                raise HTTPException(status_code=409, detail="game is over")
            game.play_computer(depth)
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        with store.locked(game_id) as game:
            game = _require(game)
            try:
                game.undo()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, game)

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        return {"nodes": perft_nodes(game.board, game.to_move, req.depth)}

    return app


def _require(game: Optional[Game]) -> Game:
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game
