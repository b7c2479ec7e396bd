"""Precomputed move rays for every color and piece kind.

A ray (``MoveSeq``) is an ordered tuple of relative moves where step n is only
reachable if step n-1 was; sliding pieces stop at the first occupied square.
The tables are built once at import time and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .board import Color, Piece
from .move import Move


MoveSeq = Tuple[Move, ...]
MoveSeqs = Tuple[MoveSeq, ...]

# White pawns advance towards row 0
PAWN_DIRECTION = MappingProxyType({Color.WHITE: -1, Color.BLACK: 1})
PAWN_START_ROW = MappingProxyType({Color.WHITE: 6, Color.BLACK: 1})
PROMOTION_ROW = MappingProxyType({Color.WHITE: 0, Color.BLACK: 7})

KNIGHT_OFFSETS = ((-2, -1), (-1, -2), (2, 1), (1, 2), (-2, 1), (-1, 2), (2, -1), (1, -2))


def _ray(dx: int, dy: int) -> MoveSeq:
    return tuple(Move(dx * i, dy * i) for i in range(1, 8))


def build_piece_table(color: Color) -> Mapping[Piece, MoveSeqs]:
    """Build the rays of every piece kind for one color."""
    direction = PAWN_DIRECTION[color]
    rook: MoveSeqs = (_ray(0, 1), _ray(0, -1), _ray(1, 0), _ray(-1, 0))
    bishop: MoveSeqs = (_ray(1, 1), _ray(-1, -1), _ray(1, -1), _ray(-1, 1))
    queen = rook + bishop
    table: Dict[Piece, MoveSeqs] = {
        Piece.NONE: (),
        Piece.PAWN: ((Move(0, direction), Move(0, 2 * direction)),),
        Piece.ROOK: rook,
        Piece.BISHOP: bishop,
        Piece.QUEEN: queen,
        Piece.KING: tuple((seq[0],) for seq in queen),
        Piece.KNIGHT: tuple((Move(dx, dy),) for dx, dy in KNIGHT_OFFSETS),
    }
    return MappingProxyType(table)


@dataclass(frozen=True)
class MoveTopology:
    """Read-only per-color, per-piece ray tables."""

    tables: Mapping[Color, Mapping[Piece, MoveSeqs]]

    @classmethod
    def build(cls) -> "MoveTopology":
        return cls(MappingProxyType({color: build_piece_table(color) for color in Color}))

    def sequences(self, color: Color, piece: Piece) -> MoveSeqs:
        return self.tables[color][piece]


MOVE_TOPOLOGY = MoveTopology.build()
