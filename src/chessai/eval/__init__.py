"""Static evaluation of a board from one color's point of view.

Pure, deterministic, and side-effect free.
"""

from __future__ import annotations

from typing import Final, Mapping

from chessai.engine.board import Board, Color, Piece
from chessai.engine.movegen import possible_move_count
from chessai.engine.status import game_status


PIECE_VALUES: Final[Mapping[Piece, int]] = {
    Piece.KING: 1000,
    Piece.QUEEN: 9,
    Piece.ROOK: 5,
    Piece.KNIGHT: 3,
    Piece.BISHOP: 3,
    Piece.PAWN: 1,
}

MATERIAL_WEIGHT: Final = 2
DRAW_SCORE: Final = -100
CHECKMATE_SCORE: Final = 1000


def material_score(board: Board, color: Color) -> int:
    return sum(PIECE_VALUES[board.get(pos).piece] for pos in board.pieces_by_color(color))


def evaluate_board(board: Board, color: Color) -> int:
    """Score ``board`` for ``color``, which is assumed to be the side to move.

    Returns:
        int: ``DRAW_SCORE`` on stalemate, ``±CHECKMATE_SCORE`` on checkmate,
            otherwise mobility difference plus twice the material difference.
    """
    move_count = possible_move_count(board, color)
    status = game_status(board, color, move_count)
    if status.finished:
        if status.draw:
            return DRAW_SCORE
        return CHECKMATE_SCORE if status.winner is color else -CHECKMATE_SCORE

    mobility = move_count - possible_move_count(board, color.other)
    material = material_score(board, color) - material_score(board, color.other)
    return mobility + MATERIAL_WEIGHT * material
