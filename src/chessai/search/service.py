from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from chessai.engine.board import Board, Color
from chessai.engine.movegen import all_possible_moves, possible_move_count
from chessai.eval import evaluate_board


logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 3
BIGGEST_SCORE = 100_000
LOWEST_SCORE = -BIGGEST_SCORE


class Bound(Enum):
    EXACT = "EXACT"
    LOWER = "LOWER"
    UPPER = "UPPER"


@dataclass(frozen=True)
class CacheEntry:
    score: int
    depth: int
    bound: Bound


class TranspositionCache:
    """Scores of boards already searched during one top-level search.

    Entries remember the remaining depth and whether the score is exact or a
    bound of the window it was searched with, so a lookup only answers when
    the stored value decides the current window. Not thread-safe.
    """

    def __init__(self) -> None:
        self._entries: Dict[Board, CacheEntry] = {}
        self.probes = 0
        self.hits = 0

    def __len__(self) -> int:
        return len(self._entries)

    def probe(self, board: Board, depth: int, alpha: int, beta: int) -> Optional[int]:
        self.probes += 1
        e = self._entries.get(board)
        if e is None or e.depth != depth:
            return None
        if (
            e.bound is Bound.EXACT
            or (e.bound is Bound.LOWER and e.score >= beta)
            or (e.bound is Bound.UPPER and e.score <= alpha)
        ):
            self.hits += 1
            return e.score
        return None

    def store(self, board: Board, depth: int, score: int, alpha: int, beta: int) -> None:
        if score <= alpha:
            bound = Bound.UPPER
        elif score >= beta:
            bound = Bound.LOWER
        else:
            bound = Bound.EXACT
        self._entries[board] = CacheEntry(score, depth, bound)


@dataclass
class SearchResult:
    best_board: Optional[Board]
    score: int
    depth: int
    nodes: int
    cache_hits: int
    cache_size: int
    time_ms: int


class SearchService:
    """Negamax search with alpha-beta pruning and a per-search cache."""

    def __init__(self) -> None:
        self.nodes = 0

    def negamax(
        self,
        board: Board,
        color: Color,
        alpha: int,
        beta: int,
        cache: TranspositionCache,
        depth: int,
    ) -> Tuple[Optional[Board], int]:
        """Search ``board`` for ``color`` to ``depth`` plies.

        Args:
            board (Board): Position to search.
            color (Color): Side to move on ``board``.
            alpha (int): Lower bound of the search window.
            beta (int): Upper bound of the search window.
            cache (TranspositionCache): Cache shared by the whole search.
            depth (int): Remaining plies.

        Returns:
            Tuple[Optional[Board], int]: Best resulting board (``board``
                itself at the horizon, ``None`` when ``color`` cannot move)
                and its score from ``color``'s point of view.
        """
        self.nodes += 1
        if depth == 0:
            return board, evaluate_board(board, color)

        moves = all_possible_moves(board, color, True, False)
        if not moves:
            # Checkmate or stalemate below the horizon
            return None, evaluate_board(board, color)

        best_board: Optional[Board] = None
        best_score = LOWEST_SCORE
        for move in moves:
            child_alpha, child_beta = -beta, -alpha
            score = cache.probe(move, depth - 1, child_alpha, child_beta)
            if score is None:
                _, score = self.negamax(
                    move, color.other, child_alpha, child_beta, cache, depth - 1
                )
                cache.store(move, depth - 1, score, child_alpha, child_beta)

            score = -score
            if best_board is None or score > best_score:
                best_score = score
                best_board = move

            alpha = max(alpha, score)
            if alpha > beta:
                break

        return best_board, best_score

    def search(self, board: Board, color: Color, depth: int = DEFAULT_DEPTH) -> SearchResult:
        """Pick the best move for ``color``.

        Args:
            board (Board): Current board.
            color (Color): Side to move.
            depth (int): Fixed search depth in plies (>= 0).

        Returns:
            SearchResult: ``best_board`` is ``None`` when ``color`` has no
                legal move; callers treat that as the end of the game.

        Raises:
            ValueError: If ``depth`` is negative.
        """
        if depth < 0:
            raise ValueError("depth must be >= 0")
        start = time.perf_counter()
        self.nodes = 0
        cache = TranspositionCache()

        # The window is symmetric, so it reads the same from either side
        alpha, beta = LOWEST_SCORE, BIGGEST_SCORE

        if depth > 0 and possible_move_count(board, color) == 0:
            best_board, score = None, evaluate_board(board, color)
        else:
            best_board, score = self.negamax(board, color, alpha, beta, cache, depth)

        result = SearchResult(
            best_board=best_board,
            score=score,
            depth=depth,
            nodes=self.nodes,
            cache_hits=cache.hits,
            cache_size=len(cache),
            time_ms=int((time.perf_counter() - start) * 1000),
        )
        logger.info(
            "search done",
            extra={
                "color": color.name.lower(),
                "depth": depth,
                "score": result.score,
                "nodes": result.nodes,
                "cache_hits": result.cache_hits,
                "time_ms": result.time_ms,
            },
        )
        return result


def search(board: Board, color: Color, depth: int = DEFAULT_DEPTH) -> Tuple[Optional[Board], int]:
    """Return ``(best_board, score)`` for ``color``; see :meth:`SearchService.search`."""
    result = SearchService().search(board, color, depth)
    return result.best_board, result.score
