import logging
import time
from typing import NamedTuple, Optional

import chess

from minimax_chess.config import CONFIG
from minimax_chess.core.board import RulesOracle, scoped_move
from minimax_chess.core.evaluator import Evaluator
from minimax_chess.core.tables import MATE_SCORE
from minimax_chess.core.utils import format_search_info

logger = logging.getLogger(__name__)

INF = 1000000


class SearchResult(NamedTuple):
    score: int
    move: Optional[chess.Move]


class SearchEngine:
    def __init__(self, evaluator: Optional[Evaluator] = None, depth: Optional[int] = None,
                 alpha_beta: Optional[bool] = None):
        self.evaluator = evaluator or Evaluator()
        self.max_depth = CONFIG.search.depth if depth is None else depth
        self.alpha_beta = CONFIG.search.alpha_beta if alpha_beta is None else alpha_beta
        self.nodes = 0

    def find_best_move(self, position: RulesOracle, depth: Optional[int] = None,
                       computer_color: chess.Color = chess.BLACK) -> Optional[str]:
        """Return the SAN of the move chosen for the side to move, or None.

        ``position`` is not modified; the search runs on a copy.
        """
        result = self.search_best_move(position, depth, computer_color)
        if result.move is None:
            return None
        return position.san(result.move)

    def search_best_move(self, position: RulesOracle, depth: Optional[int] = None,
                         computer_color: Optional[chess.Color] = None) -> SearchResult:
        depth = self.max_depth if depth is None else depth
        if depth < 0:
            raise ValueError(f"Search depth must be >= 0, got {depth}")

        side = position.side_to_move()
        if computer_color is None:
            computer_color = side

        # Scores are White-positive: the computer maximizes when it is White,
        # and a simulated opponent reply takes the opposite role.
        if side == computer_color:
            maximizing = computer_color == chess.WHITE
        else:
            maximizing = computer_color != chess.WHITE
            logger.debug("Searching the opponent's reply (%s to move)", chess.COLOR_NAMES[side])

        self.nodes = 0
        search_position = position.copy()
        start_time = time.time()
        result = self.minimax(search_position, depth, -INF, INF, maximizing)
        elapsed = time.time() - start_time

        san = position.san(result.move) if result.move is not None else None
        logger.info(format_search_info(depth, result.score, self.nodes, elapsed, san))
        return result

    def minimax(self, position: RulesOracle, depth: int, alpha: int = -INF, beta: int = INF,
                maximizing: bool = True) -> SearchResult:
        """Depth-limited minimax with alpha-beta pruning.

        Moves are tried in the order the oracle yields them and the first
        strictly better score wins ties. Every move is taken back before the
        next sibling is tried, including on a cutoff or an exception. An
        illegal move reported by the oracle aborts the whole search.
        """
        if depth < 0:
            raise ValueError(f"Search depth must be >= 0, got {depth}")
        self.nodes += 1

        if depth == 0 or position.is_game_over():
            return SearchResult(self.evaluator.evaluate(position), None)

        best_move = None
        if maximizing:
            best_score = -INF
            for move in position.legal_moves():
                with scoped_move(position, move):
                    score = self.minimax(position, depth - 1, alpha, beta, False).score
                if score > best_score:
                    best_score = score
                    best_move = move
                alpha = max(alpha, best_score)
                if self.alpha_beta and beta <= alpha:
                    break
        else:
            best_score = INF
            for move in position.legal_moves():
                with scoped_move(position, move):
                    score = self.minimax(position, depth - 1, alpha, beta, True).score
                if score < best_score:
                    best_score = score
                    best_move = move
                beta = min(beta, best_score)
                if self.alpha_beta and beta <= alpha:
                    break

        return SearchResult(best_score, best_move)

    @staticmethod
    def is_mate_score(score: int) -> bool:
        return abs(score) >= MATE_SCORE
