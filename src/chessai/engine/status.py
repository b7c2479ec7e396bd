from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .board import Board, Color
from .movegen import is_under_attack


@dataclass(frozen=True)
class GameStatus:
    finished: bool
    draw: bool
    winner: Optional[Color]


def game_status(board: Board, color_to_move: Color, available_move_count: int) -> GameStatus:
    """Decide whether the game is over before ``color_to_move`` plays.

    Args:
        board (Board): Current board.
        color_to_move (Color): Side about to move.
        available_move_count (int): Legal moves available to that side.

    Returns:
        GameStatus: Checkmate (winner is the other color), stalemate (draw),
            or an unfinished game.

    Raises:
        ValueError: If ``color_to_move`` has no king on the board.
    """
    king_pos = board.king_position(color_to_move)
    if available_move_count > 0:
        return GameStatus(finished=False, draw=False, winner=None)
    if is_under_attack(board, king_pos, color_to_move):
        return GameStatus(finished=True, draw=False, winner=color_to_move.other)
    return GameStatus(finished=True, draw=True, winner=None)
