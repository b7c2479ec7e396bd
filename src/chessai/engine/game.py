from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .board import Board, Color, Piece, initial_board, parse_fen
from .move import FullMove, Position
from .movegen import (
    PROMOTION_PIECES,
    apply_castling,
    apply_en_passant,
    apply_pawn_promotion,
    apply_simple_move,
    is_legal_result,
    possible_move_count,
)
from .status import GameStatus, game_status
from .topology import PROMOTION_ROW
from ..search.service import SearchResult, SearchService


PROMOTION_CHOICES = {
    "q": Piece.QUEEN,
    "r": Piece.ROOK,
    "b": Piece.BISHOP,
    "n": Piece.KNIGHT,
}


class IllegalMoveError(ValueError):
    """A player move rejected by the rules; the caller should ask again."""


class MoveKind(Enum):
    SIMPLE = "simple"
    CASTLING = "castling"
    EN_PASSANT = "en_passant"
    PROMOTION = "promotion"


def classify_move(board: Board, full_move: FullMove) -> MoveKind:
    """Detect which applier a player move needs.

    Raises:
        IllegalMoveError: For a diagonal pawn step that neither captures nor
            captures en passant.
    """
    info = board.get(full_move.pos)
    target = full_move.target
    dx, dy = full_move.move.dx, full_move.move.dy

    if info.piece is Piece.KING and abs(dx) == 2 and dy == 0:
        return MoveKind.CASTLING
    if info.piece is not Piece.PAWN:
        return MoveKind.SIMPLE
    if target.y == PROMOTION_ROW[info.color]:
        return MoveKind.PROMOTION
    if abs(dx) == 1:
        victim = board.get(target)
        if victim.piece is not Piece.NONE and victim.color is not info.color:
            return MoveKind.SIMPLE
        beside = board.get(Position(target.x, full_move.pos.y))
        if (
            victim.piece is Piece.NONE
            and beside.piece is Piece.PAWN
            and beside.color is not info.color
        ):
            return MoveKind.EN_PASSANT
        raise IllegalMoveError("invalid pawn move")
    return MoveKind.SIMPLE


@dataclass
class Game:
    """Game wrapper around a board and the side to move.

    Responsibility: validate player moves, run computer moves, keep the
    boards needed for undo.
    """

    board: Board
    to_move: Color = Color.WHITE
    history: List[Tuple[Board, Color]] = field(default_factory=list)

    @classmethod
    def new(cls, use_test_setup: bool = False) -> "Game":
        return cls(board=initial_board(use_test_setup))

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        """Start a game from ``fen``; both kings must be on the board."""
        board, to_move = parse_fen(fen)
        for color in Color:
            board.king_position(color)
        return cls(board=board, to_move=to_move)

    def to_fen(self) -> str:
        return self.board.to_fen(self.to_move)

    @property
    def ply(self) -> int:
        return len(self.history)

    def legal_move_count(self) -> int:
        return possible_move_count(self.board, self.to_move)

    def status(self) -> GameStatus:
        return game_status(self.board, self.to_move, self.legal_move_count())

    def play(self, full_move: FullMove, promotion: Optional[Piece] = None) -> Board:
        """Apply a player move after checking it against the legal moves.

        Args:
            full_move (FullMove): Origin and relative move.
            promotion (Optional[Piece]): Piece chosen when a pawn reaches the
                back row.

        Returns:
            Board: The committed board.

        Raises:
            IllegalMoveError: If the selection or the move is rejected.
        """
        if self.status().finished:
            raise IllegalMoveError("game is over")
        pos = full_move.pos
        if not pos.in_board():
            raise IllegalMoveError("must select a square inside the board")
        info = self.board.get(pos)
        if info.piece is Piece.NONE:
            raise IllegalMoveError("cannot select an empty square")
        if info.color is not self.to_move:
            raise IllegalMoveError("wrong piece color")
        if not full_move.target.in_board():
            raise IllegalMoveError("cannot move outside the board")

        kind = classify_move(self.board, full_move)
        if kind is MoveKind.CASTLING:
            direction = 1 if full_move.move.dx > 0 else -1
            candidate = apply_castling(self.board, pos, direction)
        elif kind is MoveKind.PROMOTION:
            if promotion not in PROMOTION_PIECES:
                raise IllegalMoveError("promotion requires a queen, rook, bishop or knight")
            candidate = apply_pawn_promotion(self.board, full_move, promotion)
        elif kind is MoveKind.EN_PASSANT:
            candidate = apply_en_passant(self.board, full_move)
        else:
            candidate = apply_simple_move(self.board, full_move)

        if not is_legal_result(self.board, pos, candidate):
            raise IllegalMoveError("illegal move")
        self._commit(candidate)
        return candidate

    def play_computer(
        self, depth: int, service: Optional[SearchService] = None
    ) -> SearchResult:
        """Search for the side to move and commit the chosen board.

        A result whose ``best_board`` is ``None`` means no move was available;
        the game is left unchanged.
        """
        if depth < 1:
            raise ValueError("computer moves need a search depth of at least 1")
        result = (service or SearchService()).search(self.board, self.to_move, depth)
        if result.best_board is not None:
            self._commit(result.best_board)
        return result

    def undo(self) -> None:
        if not self.history:
            raise ValueError("no moves to undo")
        self.board, self.to_move = self.history.pop()

    def _commit(self, board: Board) -> None:
        self.history.append((self.board, self.to_move))
        self.board = board
        self.to_move = self.to_move.other
