from __future__ import annotations

from .board import Board, Color
from .movegen import all_possible_moves


def perft(board: Board, color: Color, depth: int) -> int:
    """Count the leaf boards of the legal move tree below ``board``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over every legal child board of
      perft(child, other color, depth - 1).
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    children = all_possible_moves(board, color, True, False)
    if depth == 1:
        return len(children)
    return sum(perft(child, color.other, depth - 1) for child in children)
