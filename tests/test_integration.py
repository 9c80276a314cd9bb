"""
Integration test suite for the minimax chess engine.

Tests components working together end-to-end:
- Full game simulations (engine vs engine, human script vs computer)
- FastAPI REST API integration
- Terminal play loop
- Configuration loading
"""

import importlib
import logging

import chess
import pytest

from minimax_chess.config import CONFIG, Config, apply_env_overrides
from minimax_chess.core.board import ChessBoard
from minimax_chess.core.search import SearchEngine
from minimax_chess.core.tables import MATE_SCORE
from minimax_chess.main import Engine

# ════════════════════════════════════════════════════════════════════════════
#  FULL GAME SIMULATIONS
# ════════════════════════════════════════════════════════════════════════════


class TestFullGame:
    """Tests that the engine can play games without crashing."""

    def test_engine_vs_engine_plays_legal_moves(self):
        """Both sides driven by the searcher; every move must be legal."""
        engine = SearchEngine(depth=1)
        board = ChessBoard()
        move_count = 0

        while not board.is_game_over() and move_count < 40:
            san = engine.find_best_move(board, 1, board.side_to_move())
            assert san is not None, f"No move at ply {move_count}"
            board.apply_move(board.parse_san(san))
            move_count += 1

        assert move_count == 40 or board.is_game_over()

    def test_human_vs_computer_session(self):
        """Scripted human as White, computer replies as Black."""
        eng = Engine(depth=2)
        for uci in ["e2e4", "d2d4", "g1f3"]:
            if eng.is_game_over():
                break
            move = chess.Move.from_uci(uci)
            if move not in eng.board.board.legal_moves:
                break
            eng.make_move(uci)
            assert eng.computer_move() is not None

        assert len(eng.move_history) >= 2
        assert all(entry["san"] for entry in eng.move_history)
        assert eng.is_player_turn()

    def test_computer_opens_as_white(self):
        eng = Engine(depth=1, player_color="b")
        san = eng.computer_move()
        assert san is not None
        assert eng.board.side_to_move() == chess.BLACK

    def test_computer_delivers_mate(self):
        eng = Engine(depth=1, player_color="b", fen="6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1")
        assert eng.computer_move() == "Ra8#"
        assert eng.status() == "Checkmate! White wins!"

    def test_engine_avoids_walking_into_mate(self):
        """Depth 2 sees the back-rank threat and makes luft or defends."""
        board = ChessBoard("r5k1/5ppp/8/8/8/8/5PPP/6K1 w - - 0 1")
        engine = SearchEngine(depth=2)
        score, move = engine.search_best_move(board, 2)
        board.apply_move(move)
        reply_score, _ = engine.search_best_move(board, 1)
        assert reply_score != -MATE_SCORE

    def test_search_respects_repetition_history(self):
        """A position that repeats a third time is scored as a draw."""
        board = ChessBoard()
        for uci in ["g1f3", "g8f6", "f3g1", "f6g8", "g1f3", "g8f6", "f3g1"]:
            board.make_move(uci)
        engine = SearchEngine(depth=1)
        score, move = engine.search_best_move(board, 1)
        assert move is not None
        assert score <= 0  # black can at least repeat for a draw


# ════════════════════════════════════════════════════════════════════════════
#  REST API INTEGRATION
# ════════════════════════════════════════════════════════════════════════════


class TestAPIIntegration:
    """Tests FastAPI REST API endpoints."""

    @pytest.fixture(autouse=True)
    def setup_client(self):
        from fastapi.testclient import TestClient
        from interface.api import app, engine

        self.client = TestClient(app)
        self.engine = engine
        # Reset state before each test
        engine.set_player_color("w")
        engine.set_depth(CONFIG.search.depth)
        engine.reset()

    def test_get_board_initial(self):
        """GET /board returns initial position."""
        response = self.client.get("/board")
        assert response.status_code == 200
        data = response.json()
        assert data["fen"] == chess.STARTING_FEN
        assert data["initial_fen"] == chess.STARTING_FEN
        assert data["turn"] == "white"
        assert data["player_color"] == "w"
        assert data["is_game_over"] is False
        assert data["status"] is None
        assert data["history"] == []
        assert len(data["legal_moves"]) == 20

    def test_post_move_valid(self):
        """POST /move with valid UCI move."""
        response = self.client.post("/move", json={"move": "e2e4"})
        assert response.status_code == 200
        data = response.json()
        assert data["move"] == "e2e4"
        assert data["san"] == "e4"
        assert "4P3" in data["fen"]  # Pawn on e4 in FEN notation

    def test_post_move_illegal(self):
        """POST /move with illegal move returns 400."""
        response = self.client.post("/move", json={"move": "e2e5"})
        assert response.status_code == 400

    def test_post_move_invalid_format(self):
        """POST /move with bad UCI format returns 400."""
        response = self.client.post("/move", json={"move": "zzzz"})
        assert response.status_code == 400

    def test_post_move_out_of_turn(self):
        self.client.post("/move", json={"move": "e2e4"})
        response = self.client.post("/move", json={"move": "e7e5"})
        assert response.status_code == 400

    def test_set_position_valid(self):
        """POST /position with valid FEN."""
        fen = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        response = self.client.post("/position", json={"fen": fen})
        assert response.status_code == 200
        assert response.json()["fen"] == fen
        assert self.client.get("/board").json()["initial_fen"] == fen

    def test_set_position_invalid(self):
        """POST /position with invalid FEN returns 400."""
        response = self.client.post("/position", json={"fen": "invalid"})
        assert response.status_code == 400

    def test_validate_fen(self):
        ok = self.client.post("/validate-fen", json={"fen": chess.STARTING_FEN}).json()
        bad = self.client.post("/validate-fen", json={"fen": "invalid"}).json()
        assert ok == {"valid": True, "error": None}
        assert bad["valid"] is False
        assert "Invalid FEN" in bad["error"]

    def test_search_returns_move(self):
        """POST /search returns a valid best move."""
        response = self.client.post("/search", json={"depth": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["best_move"] is not None
        # Verify the returned move is legal
        board = chess.Board()
        move = chess.Move.from_uci(data["best_move"])
        assert move in board.legal_moves
        assert data["san"] == board.san(move)
        # Search does not play the move
        assert self.client.get("/board").json()["fen"] == chess.STARTING_FEN

    def test_search_reports_mate(self):
        self.client.post("/position", json={"fen": "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"})
        data = self.client.post("/search", json={"depth": 1}).json()
        assert data["san"] == "Ra8#"
        assert data["score"] == MATE_SCORE
        assert data["mate"] is True

    def test_search_depth_out_of_range(self):
        response = self.client.post("/search", json={"depth": 9})
        assert response.status_code == 400

    def test_search_game_over_returns_400(self):
        """POST /search when game is over returns 400."""
        fen = "rnb1kbnr/pppp1ppp/4p3/8/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
        self.client.post("/position", json={"fen": fen})
        response = self.client.post("/search")
        assert response.status_code == 400

    def test_search_leaves_session_searcher_alone(self):
        self.engine.search.nodes = 12345
        assert self.client.post("/search", json={"depth": 2}).status_code == 200
        assert self.engine.search.nodes == 12345

    def test_computer_move(self):
        self.client.post("/settings", json={"depth": 1})
        self.client.post("/move", json={"move": "e2e4"})
        response = self.client.post("/computer-move")
        assert response.status_code == 200
        data = response.json()
        assert data["san"] is not None
        state = self.client.get("/board").json()
        assert state["turn"] == "white"
        assert [h["san"] for h in state["history"]] == ["e4", data["san"]]

    def test_computer_move_not_its_turn(self):
        response = self.client.post("/computer-move")
        assert response.status_code == 400

    def test_settings(self):
        response = self.client.post("/settings", json={"player_color": "b", "depth": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["player_color"] == "b"
        assert data["depth"] == 2

    def test_settings_invalid(self):
        assert self.client.post("/settings", json={"depth": 0}).status_code == 400
        assert self.client.post("/settings", json={"player_color": "green"}).status_code == 400

    def test_reset_board(self):
        """POST /reset returns to initial position."""
        self.client.post("/move", json={"move": "e2e4"})
        response = self.client.post("/reset")
        assert response.status_code == 200
        assert response.json()["fen"] == chess.STARTING_FEN
        assert self.client.get("/board").json()["history"] == []

    def test_reset_with_fen(self):
        fen = "4k3/8/8/8/8/8/8/R3K3 w Q - 0 1"
        response = self.client.post("/reset", json={"fen": fen})
        assert response.status_code == 200
        assert response.json()["fen"] == fen

    def test_full_api_game_flow(self):
        """Play a few moves via API and verify state consistency."""
        self.client.post("/settings", json={"depth": 1})
        r = self.client.get("/board")
        assert r.json()["turn"] == "white"

        self.client.post("/move", json={"move": "e2e4"})
        r = self.client.get("/board")
        assert r.json()["turn"] == "black"

        r = self.client.post("/computer-move")
        assert r.json()["san"] is not None

        self.client.post("/reset")
        r = self.client.get("/board")
        assert r.json()["fen"] == chess.STARTING_FEN

    def test_game_over_status(self):
        fen = "rnb1kbnr/pppp1ppp/4p3/8/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
        self.client.post("/position", json={"fen": fen})
        data = self.client.get("/board").json()
        assert data["is_game_over"] is True
        assert data["status"] == "Checkmate! Black wins!"


# ════════════════════════════════════════════════════════════════════════════
#  TERMINAL LOOP
# ════════════════════════════════════════════════════════════════════════════


class TestCLIIntegration:
    def test_plays_until_quit(self, monkeypatch, capsys):
        from interface import cli

        inputs = iter(["e2e5", "e2e4", "quit"])
        monkeypatch.setattr("builtins.input", lambda _prompt="": next(inputs))
        cli.main(["--depth", "1"])

        out = capsys.readouterr().out
        assert "try again" in out
        assert "Engine plays:" in out

    def test_computer_mates_from_fen(self, monkeypatch, capsys):
        from interface import cli

        monkeypatch.setattr("builtins.input", lambda _prompt="": pytest.fail("no input expected"))
        cli.main(["--depth", "1", "--color", "b", "--fen", "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"])

        out = capsys.readouterr().out
        assert "Engine plays: Ra8#" in out
        assert "Checkmate! White wins!" in out


# ════════════════════════════════════════════════════════════════════════════
#  CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════


    def test_end_of_input_quits(self, monkeypatch, capsys):
        from interface import cli

        def no_more_input(_prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", no_more_input)
        cli.main(["--depth", "1"])

        assert "Game Over" not in capsys.readouterr().out


class TestConfig:
    def test_defaults(self):
        cfg = Config()
        assert cfg.search.depth == 3
        assert (cfg.search.min_depth, cfg.search.max_depth) == (1, 5)
        assert cfg.search.alpha_beta is True
        assert cfg.eval.mobility_weight == 5
        assert cfg.game.player_color == "w"

    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = Config.load_from_toml(str(tmp_path / "nope.toml"))
        assert cfg.search.depth == 3

    def test_load_from_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            'log_level = "DEBUG"\n'
            "[search]\ndepth = 4\nalpha_beta = false\nbogus = 1\n"
            "[eval]\nmobility_weight = 0\n"
            '[game]\nplayer_color = "b"\n'
        )
        cfg = Config.load_from_toml(str(path))
        assert cfg.search.depth == 4
        assert cfg.search.alpha_beta is False
        assert not hasattr(cfg.search, "bogus")
        assert cfg.eval.mobility_weight == 0
        assert cfg.game.player_color == "b"
        assert cfg.log_level == "DEBUG"

    def test_env_depth_override(self, monkeypatch):
        monkeypatch.setenv("MINIMAX_CHESS_SEARCH_DEPTH", "4")
        assert apply_env_overrides(Config()).search.depth == 4

    def test_env_depth_non_integer_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("MINIMAX_CHESS_SEARCH_DEPTH", "deep")
        with caplog.at_level(logging.WARNING, logger="minimax_chess.config"):
            cfg = apply_env_overrides(Config())
        assert cfg.search.depth == 3
        assert "non-integer" in caplog.text

    def test_env_depth_out_of_range_clamped(self, monkeypatch, caplog):
        monkeypatch.setenv("MINIMAX_CHESS_SEARCH_DEPTH", "0")
        with caplog.at_level(logging.WARNING, logger="minimax_chess.config"):
            cfg = apply_env_overrides(Config())
        assert cfg.search.depth == 1
        assert "outside [1, 5]" in caplog.text

    def test_toml_depth_out_of_range_clamped(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MINIMAX_CHESS_SEARCH_DEPTH", raising=False)
        path = tmp_path / "config.toml"
        path.write_text("[search]\ndepth = 9\n")
        assert apply_env_overrides(Config.load_from_toml(str(path))).search.depth == 5

    def test_module_config_reads_env_on_import(self, monkeypatch):
        from minimax_chess import config

        monkeypatch.setenv("MINIMAX_CHESS_SEARCH_DEPTH", "2")
        try:
            assert importlib.reload(config).CONFIG.search.depth == 2
        finally:
            monkeypatch.delenv("MINIMAX_CHESS_SEARCH_DEPTH")
            importlib.reload(config)
