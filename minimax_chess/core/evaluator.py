"""Static evaluator: material, piece-square tables and side-to-move mobility."""

import chess

from minimax_chess.config import CONFIG
from minimax_chess.core.board import RulesOracle
from minimax_chess.core.tables import DRAW_SCORE, MATE_SCORE, PIECE_SQUARE_TABLES, PIECE_VALUES


class Evaluator:
    def __init__(self, cfg=None):
        self.cfg = cfg or CONFIG.eval

    def evaluate(self, position: RulesOracle) -> int:
        """Return static eval in centipawns, positive favors White.

        Only the side to move's mobility is scored; the sign alternates as
        the search descends, so both colors are sampled across the tree.
        """
        if position.is_checkmate():
            return -MATE_SCORE if position.side_to_move() == chess.WHITE else MATE_SCORE
        if position.is_draw():
            return DRAW_SCORE

        score = 0
        for row, rank in enumerate(position.board_snapshot()):
            for col, piece in enumerate(rank):
                if piece is None:
                    continue
                if piece.color == chess.WHITE:
                    score += PIECE_VALUES[piece.piece_type]
                else:
                    score -= PIECE_VALUES[piece.piece_type]
                if self.cfg.use_positional:
                    score += self.position_bonus(piece, row, col)

        mobility = len(position.legal_moves()) * self.cfg.mobility_weight
        score += mobility if position.side_to_move() == chess.WHITE else -mobility
        return score

    @staticmethod
    def position_bonus(piece: chess.Piece, row: int, col: int) -> int:
        """Table bonus for ``piece`` on snapshot square (row, col).

        White reads the table as drawn; Black reads it upside down and the
        bonus counts against White.
        """
        table = PIECE_SQUARE_TABLES[piece.piece_type]
        if piece.color == chess.WHITE:
            return table[row][col]
        return -table[7 - row][col]
