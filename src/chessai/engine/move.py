from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """Board coordinate.

    Attributes:
        x (int): File, 0 (a-file) .. 7 (h-file).
        y (int): Row counted from Black's back rank, 0 (rank 8) .. 7 (rank 1).
    """

    x: int
    y: int

    def in_board(self) -> bool:
        return 0 <= self.x <= 7 and 0 <= self.y <= 7

    def offset(self, move: "Move") -> "Position":
        return Position(self.x + move.dx, self.y + move.dy)


@dataclass(frozen=True)
class Move:
    """Relative displacement from a position."""

    dx: int
    dy: int


@dataclass(frozen=True)
class FullMove:
    """Origin position plus the relative move applied to it."""

    pos: Position
    move: Move

    @property
    def target(self) -> Position:
        return self.pos.offset(self.move)


def square_name(pos: Position) -> str:
    """Convert a position into algebraic notation.

    Args:
        pos (Position): Position with both coordinates in 0..7.

    Returns:
        str: Square name such as ``"e2"``.

    Raises:
        ValueError: If ``pos`` is outside the board.
    """
    if not pos.in_board():
        raise ValueError(f"invalid position: {pos}")
    return chr(ord("a") + pos.x) + str(8 - pos.y)


def parse_square(s: str) -> Position:
    """Convert algebraic notation into a position.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Position: Matching board position (``"a8"`` is ``(0, 0)``).

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return Position(ord(s[0]) - ord("a"), 8 - int(s[1]))


def parse_full_move(text: str) -> FullMove:
    """Parse the ``"x y dx dy"`` move form.

    Raises:
        ValueError: If the text does not hold four integers or the origin is
            outside the board.
    """
    parts = text.split()
    if len(parts) != 4:
        raise ValueError(f"expected 'x y dx dy', got {text!r}")
    try:
        x, y, dx, dy = (int(p) for p in parts)
    except ValueError as e:
        raise ValueError(f"move components must be integers: {text!r}") from e
    pos = Position(x, y)
    if not pos.in_board():
        raise ValueError(f"origin outside the board: {text!r}")
    return FullMove(pos, Move(dx, dy))
