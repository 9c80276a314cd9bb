"""Rules oracle: the board capabilities the engine relies on, backed by python-chess."""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol, runtime_checkable

import chess

Snapshot = List[List[Optional[chess.Piece]]]


class IllegalMoveError(ValueError):
    """A move could not be applied (or undone) on the current position."""


class InvalidFenError(ValueError):
    """A FEN string does not describe a usable position."""


@runtime_checkable
class RulesOracle(Protocol):
    """What the evaluator and searcher need from a chess rules implementation."""

    def legal_moves(self) -> List[chess.Move]: ...
    def apply_move(self, move: chess.Move) -> None: ...
    def undo_last_move(self) -> chess.Move: ...
    def is_checkmate(self) -> bool: ...
    def is_stalemate(self) -> bool: ...
    def is_draw(self) -> bool: ...
    def is_threefold_repetition(self) -> bool: ...
    def is_insufficient_material(self) -> bool: ...
    def is_game_over(self) -> bool: ...
    def side_to_move(self) -> chess.Color: ...
    def board_snapshot(self) -> Snapshot: ...
    def san(self, move: chess.Move) -> str: ...
    def copy(self) -> "RulesOracle": ...


@contextmanager
def scoped_move(position: RulesOracle, move: chess.Move) -> Iterator[RulesOracle]:
    """Apply ``move`` for the duration of the block and always take it back.

    If applying fails nothing was pushed, so nothing is undone and the
    error propagates to the caller.
    """
    position.apply_move(move)
    try:
        yield position
    finally:
        position.undo_last_move()


class ChessBoard:
    def __init__(self, fen: str = None):
        """Initialize from FEN or the standard starting position."""
        self.board = self._parse_fen(fen) if fen else chess.Board()
        self.move_history = []

    @staticmethod
    def _parse_fen(fen: str) -> chess.Board:
        try:
            board = chess.Board(fen.strip())
        except ValueError as e:
            raise InvalidFenError(f"Invalid FEN string: {e}") from e
        if not board.is_valid():
            raise InvalidFenError(f"Invalid FEN string: illegal position ({board.status()!r})")
        return board

    def reset(self):
        """Reset to the initial position."""
        self.board.reset()
        self.move_history.clear()

    def set_fen(self, fen: str):
        """Set board state from a FEN string. History is cleared."""
        self.board = self._parse_fen(fen)
        self.move_history.clear()

    def get_fen(self) -> str:
        """Return the current FEN."""
        return self.board.fen()

    fen = get_fen

    def copy(self) -> "ChessBoard":
        """Independent copy, including the move stack used for repetition checks."""
        clone = ChessBoard.__new__(ChessBoard)
        clone.board = self.board.copy()
        clone.move_history = list(self.move_history)
        return clone

    def mirror(self) -> "ChessBoard":
        """Color-flipped, rank-mirrored counterpart of the current position."""
        clone = ChessBoard.__new__(ChessBoard)
        clone.board = self.board.mirror()
        clone.move_history = []
        return clone

    # -- oracle capabilities ------------------------------------------------

    def legal_moves(self) -> List[chess.Move]:
        return list(self.board.legal_moves)

    def apply_move(self, move: chess.Move) -> None:
        if move not in self.board.legal_moves:
            raise IllegalMoveError(f"Illegal move {move.uci()} in {self.board.fen()}")
        self.board.push(move)
        self.move_history.append(move.uci())

    def undo_last_move(self) -> chess.Move:
        if not self.board.move_stack:
            raise IllegalMoveError("No move to undo")
        if self.move_history:
            self.move_history.pop()
        return self.board.pop()

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_stalemate(self) -> bool:
        return self.board.is_stalemate()

    def is_threefold_repetition(self) -> bool:
        return self.board.is_repetition(3)

    def is_insufficient_material(self) -> bool:
        return self.board.is_insufficient_material()

    def is_fifty_moves(self) -> bool:
        return self.board.halfmove_clock >= 100

    def is_draw(self) -> bool:
        return (
            self.is_fifty_moves()
            or self.is_stalemate()
            or self.is_insufficient_material()
            or self.is_threefold_repetition()
        )

    def is_game_over(self) -> bool:
        """Check if the game has ended."""
        return self.is_checkmate() or self.is_draw()

    def side_to_move(self) -> chess.Color:
        return self.board.turn

    def board_snapshot(self) -> Snapshot:
        """8x8 grid, row 0 = rank 8, column 0 = a-file."""
        return [
            [self.board.piece_at(chess.square(file, rank)) for file in range(8)]
            for rank in range(7, -1, -1)
        ]

    def san(self, move: chess.Move) -> str:
        return self.board.san(move)

    def parse_san(self, san: str) -> chess.Move:
        try:
            return self.board.parse_san(san)
        except ValueError as e:
            raise IllegalMoveError(f"Cannot play {san!r}: {e}") from e

    # -- UCI conveniences ---------------------------------------------------

    def make_move(self, move_str: str) -> bool:
        """Push a UCI move (e.g. 'e2e4'). Returns True if legal."""
        try:
            self.apply_move(chess.Move.from_uci(move_str))
        except ValueError:
            return False
        return True

    def undo_move(self):
        """Pop the last move."""
        if self.board.move_stack:
            self.undo_last_move()

    def get_legal_moves(self):
        """Return legal moves as UCI strings."""
        return [m.uci() for m in self.board.legal_moves]

    def __str__(self):
        return str(self.board)
