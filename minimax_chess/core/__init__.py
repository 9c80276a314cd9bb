"""Core engine components: rules oracle, evaluator, and minimax search."""

from .board import ChessBoard, IllegalMoveError, InvalidFenError, RulesOracle, scoped_move
from .evaluator import Evaluator
from .search import SearchEngine, SearchResult
