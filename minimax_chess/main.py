"""Human-vs-computer game session built on the rules oracle and the search engine."""

import logging
from typing import Dict, List, Optional, Tuple, Union

import chess

from minimax_chess.config import CONFIG
from minimax_chess.core.board import ChessBoard, IllegalMoveError, InvalidFenError
from minimax_chess.core.evaluator import Evaluator
from minimax_chess.core.search import SearchEngine

logger = logging.getLogger(__name__)

ColorLike = Union[chess.Color, str]


def parse_color(color: ColorLike) -> chess.Color:
    """Accept chess.WHITE/BLACK or 'w'/'b'/'white'/'black'."""
    if isinstance(color, bool):
        return color
    key = str(color).strip().lower()
    if key in ("w", "white"):
        return chess.WHITE
    if key in ("b", "black"):
        return chess.BLACK
    raise ValueError(f"Unknown color: {color!r}")


def color_code(color: chess.Color) -> str:
    return "w" if color == chess.WHITE else "b"


class Engine:
    def __init__(self, depth: Optional[int] = None, player_color: Optional[ColorLike] = None,
                 fen: Optional[str] = None):
        self.board = ChessBoard(fen)
        self.initial_fen = self.board.get_fen()
        self.search = SearchEngine(Evaluator())
        self.player_color = parse_color(player_color if player_color is not None
                                        else CONFIG.game.player_color)
        self.set_depth(CONFIG.search.depth if depth is None else depth)
        self.move_history: List[Dict[str, Optional[str]]] = []

    # -- state --------------------------------------------------------------

    @property
    def computer_color(self) -> chess.Color:
        return not self.player_color

    def is_player_turn(self) -> bool:
        return self.board.side_to_move() == self.player_color

    def is_game_over(self) -> bool:
        return self.board.is_game_over()

    def status(self) -> Optional[str]:
        """Game-over message, or None while the game is still going."""
        if not self.board.is_game_over():
            return None
        if self.board.is_checkmate():
            winner = "Black" if self.board.side_to_move() == chess.WHITE else "White"
            return f"Checkmate! {winner} wins!"
        if self.board.is_stalemate():
            return "Stalemate!"
        if self.board.is_threefold_repetition():
            return "Draw by threefold repetition!"
        if self.board.is_insufficient_material():
            return "Draw by insufficient material!"
        return "Draw!"

    # -- settings -----------------------------------------------------------

    def set_depth(self, depth: int):
        lo, hi = CONFIG.search.min_depth, CONFIG.search.max_depth
        if not lo <= depth <= hi:
            raise ValueError(f"Search depth must be between {lo} and {hi}, got {depth}")
        self.search_depth = depth

    def set_player_color(self, color: ColorLike):
        """Switch sides; like a new game, this resets the board."""
        color = parse_color(color)
        if color != self.player_color:
            self.player_color = color
            self.reset()

    @staticmethod
    def validate_fen(fen: str) -> Optional[str]:
        """Return an error message for a bad FEN, None if it is usable."""
        try:
            ChessBoard(fen)
        except InvalidFenError as e:
            return str(e)
        return None

    def reset(self, fen: Optional[str] = None):
        """Start over from ``fen`` (validated) or the standard position."""
        if fen and fen.strip():
            self.board.set_fen(fen)
        else:
            self.board.reset()
        self.initial_fen = self.board.get_fen()
        self.move_history.clear()
        logger.info("New game from %s, player is %s", self.initial_fen,
                    chess.COLOR_NAMES[self.player_color])

    # -- moves --------------------------------------------------------------

    def make_move(self, from_square: str, to_square: Optional[str] = None,
                  promotion: Optional[str] = None) -> str:
        """Play the human's move and return its SAN.

        Accepts a UCI string ("e2e4", "e7e8q") or separate squares. A pawn
        reaching the last rank without a promotion piece becomes a queen.
        """
        if self.is_game_over():
            raise IllegalMoveError(f"Game is over: {self.status()}")
        if not self.is_player_turn():
            raise IllegalMoveError("It is not the player's turn")
        move = self._parse_move(from_square, to_square, promotion)
        return self._play(move)

    def computer_move(self) -> Optional[str]:
        """Let the computer reply; returns the SAN played or None."""
        if self.is_game_over():
            raise IllegalMoveError(f"Game is over: {self.status()}")
        if self.is_player_turn():
            raise IllegalMoveError("It is not the computer's turn")
        san = self.search.find_best_move(self.board, self.search_depth, self.computer_color)
        if san is None:
            return None
        return self._play(self.board.parse_san(san))

    def get_best_move(self, depth: Optional[int] = None) -> Tuple[Optional[str], int]:
        """Suggest a move for the side to move without playing it: (san, score)."""
        score, move = self.search.search_best_move(
            self.board, self.search_depth if depth is None else depth)
        return (self.board.san(move) if move is not None else None), score

    def _parse_move(self, from_square: str, to_square: Optional[str],
                    promotion: Optional[str]) -> chess.Move:
        try:
            if to_square is None:
                move = chess.Move.from_uci(from_square.strip())
            else:
                move = chess.Move(
                    chess.parse_square(from_square),
                    chess.parse_square(to_square),
                    chess.Piece.from_symbol(promotion).piece_type if promotion else None,
                )
        except ValueError as e:
            raise IllegalMoveError(f"Cannot parse move {from_square!r} {to_square or ''}: {e}") from e

        if move.promotion is None:
            piece = self.board.board.piece_at(move.from_square)
            if (piece is not None and piece.piece_type == chess.PAWN
                    and chess.square_rank(move.to_square) in (0, 7)):
                move = chess.Move(move.from_square, move.to_square, chess.QUEEN)
        return move

    def _play(self, move: chess.Move) -> str:
        if move not in self.board.board.legal_moves:
            raise IllegalMoveError(f"Illegal move: {move.uci()}")
        san = self.board.san(move)
        self.board.apply_move(move)
        self.move_history.append({
            "from": chess.square_name(move.from_square),
            "to": chess.square_name(move.to_square),
            "promotion": chess.piece_symbol(move.promotion) if move.promotion else None,
            "san": san,
        })
        logger.info("%s plays %s", chess.COLOR_NAMES[not self.board.side_to_move()], san)
        return san
