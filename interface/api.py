"""FastAPI REST interface for playing against the engine."""

import threading

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

from minimax_chess.config import CONFIG, configure_logging
from minimax_chess.core.search import SearchEngine
from minimax_chess.main import Engine, color_code

configure_logging()

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

# Shared game session.
engine = Engine()
_board_lock = threading.Lock()


class FenRequest(BaseModel):
    fen: str


class ResetRequest(BaseModel):
    fen: Optional[str] = None


class MoveRequest(BaseModel):
    move: str  # UCI format e.g. "e2e4"


class SearchRequest(BaseModel):
    depth: Optional[int] = None


class SettingsRequest(BaseModel):
    player_color: Optional[str] = None
    depth: Optional[int] = None


def _state():
    board = engine.board.board
    return {
        "fen": board.fen(),
        "initial_fen": engine.initial_fen,
        "turn": "white" if board.turn == chess.WHITE else "black",
        "player_color": color_code(engine.player_color),
        "depth": engine.search_depth,
        "legal_moves": engine.board.get_legal_moves(),
        "history": list(engine.move_history),
        "is_game_over": engine.is_game_over(),
        "status": engine.status(),
    }


@app.get("/board")
def get_board():
    with _board_lock:
        return _state()


@app.post("/position")
def set_position(req: FenRequest):
    with _board_lock:
        try:
            engine.reset(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"fen": engine.board.get_fen()}


@app.post("/validate-fen")
def validate_fen(req: FenRequest):
    error = Engine.validate_fen(req.fen)
    return {"valid": error is None, "error": error}


@app.post("/move")
def make_move(req: MoveRequest):
    with _board_lock:
        try:
            san = engine.make_move(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"fen": engine.board.get_fen(), "move": req.move, "san": san,
                "status": engine.status()}


@app.post("/search")
def search_move(req: SearchRequest = SearchRequest()):
    with _board_lock:
        if engine.is_game_over():
            raise HTTPException(status_code=400, detail="Game is already over")
        depth = req.depth if req.depth is not None else engine.search_depth
        if not CONFIG.search.min_depth <= depth <= CONFIG.search.max_depth:
            raise HTTPException(status_code=400, detail=f"Depth out of range: {depth}")
        search_board = engine.board.copy()

    # own searcher so concurrent requests keep separate node counts
    score, move = SearchEngine(engine.search.evaluator).search_best_move(search_board, depth)
    return {
        "best_move": move.uci() if move else None,
        "san": search_board.san(move) if move else None,
        "score": score,
        "mate": SearchEngine.is_mate_score(score),
        "fen": search_board.get_fen(),
    }


@app.post("/computer-move")
def computer_move():
    with _board_lock:
        try:
            san = engine.computer_move()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"fen": engine.board.get_fen(), "san": san, "status": engine.status()}


@app.post("/settings")
def update_settings(req: SettingsRequest):
    with _board_lock:
        try:
            if req.depth is not None:
                engine.set_depth(req.depth)
            if req.player_color is not None:
                engine.set_player_color(req.player_color)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state()


@app.post("/reset")
def reset_board(req: ResetRequest = ResetRequest()):
    with _board_lock:
        try:
            engine.reset(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"fen": engine.board.get_fen()}
