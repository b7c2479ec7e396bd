from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .move import Position, parse_square, square_name


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
# Pawns, rooks and kings only
TEST_SETUP_FEN = "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1"


class Color(Enum):
    WHITE = 0
    BLACK = 1

    @property
    def other(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class Status(Enum):
    """One-bit piece status; its meaning depends on the piece.

    Pawn: the pawn just double-pushed and can be captured en passant.
    Rook/king: the piece has lost its castling rights.
    """

    DEFAULT = 0
    FLAGGED = 1
    EN_PASSANT_ALLOWED = 1
    CASTLING_NOT_ALLOWED = 1


class Piece(Enum):
    NONE = 0
    PAWN = 1
    ROOK = 2
    KNIGHT = 3
    BISHOP = 4
    KING = 5
    QUEEN = 6


STATUS_PIECES = frozenset({Piece.PAWN, Piece.ROOK, Piece.KING})

# Bit layout per square: 3 piece-kind bits, then status, then color
PIECE_BITS = 3
STATUS_PLANE = PIECE_BITS
COLOR_PLANE = PIECE_BITS + 1
PLANE_COUNT = PIECE_BITS + 2

KING_HOME_FILE = 4
HOME_ROW = {Color.WHITE: 7, Color.BLACK: 0}

CHAR_TO_PIECE = {
    "p": Piece.PAWN,
    "r": Piece.ROOK,
    "n": Piece.KNIGHT,
    "b": Piece.BISHOP,
    "k": Piece.KING,
    "q": Piece.QUEEN,
}
PIECE_TO_CHAR = {v: k for k, v in CHAR_TO_PIECE.items()}

# Castling right -> (color, rook file)
CASTLING_RIGHTS = {
    "K": (Color.WHITE, 7),
    "Q": (Color.WHITE, 0),
    "k": (Color.BLACK, 7),
    "q": (Color.BLACK, 0),
}

# Glyphs assume a light background
PIECE_GLYPHS = {
    Color.WHITE: {
        Piece.PAWN: "♙",
        Piece.ROOK: "♖",
        Piece.KNIGHT: "♘",
        Piece.BISHOP: "♗",
        Piece.KING: "♔",
        Piece.QUEEN: "♕",
    },
    Color.BLACK: {
        Piece.PAWN: "♟",
        Piece.ROOK: "♜",
        Piece.KNIGHT: "♞",
        Piece.BISHOP: "♝",
        Piece.KING: "♚",
        Piece.QUEEN: "♛",
    },
}
DARK_SQUARE = "▨"


@dataclass(frozen=True)
class SquareContent:
    """Piece kind, status and color held by one square.

    Instances are normalized on construction: an empty square is always
    ``(NONE, DEFAULT, WHITE)`` and pieces without a status meaning always carry
    ``DEFAULT``, so equal game states encode to identical bits.
    """

    piece: Piece = Piece.NONE
    status: Status = Status.DEFAULT
    color: Color = Color.WHITE

    def __post_init__(self) -> None:
        if self.piece is Piece.NONE:
            object.__setattr__(self, "color", Color.WHITE)
        if self.piece not in STATUS_PIECES:
            object.__setattr__(self, "status", Status.DEFAULT)

    def with_status(self, status: Status) -> "SquareContent":
        return SquareContent(self.piece, status, self.color)

    @property
    def code(self) -> int:
        return (
            self.piece.value
            | (self.status.value << STATUS_PLANE)
            | (self.color.value << COLOR_PLANE)
        )


EMPTY = SquareContent()


def _decode(code: int) -> Optional[SquareContent]:
    kind = code & ((1 << PIECE_BITS) - 1)
    if kind > Piece.QUEEN.value:
        return None
    return SquareContent(
        Piece(kind),
        Status((code >> STATUS_PLANE) & 1),
        Color((code >> COLOR_PLANE) & 1),
    )


_DECODED: Tuple[Optional[SquareContent], ...] = tuple(
    _decode(code) for code in range(1 << PLANE_COUNT)
)


def _get_bit(bb: int, sq: int) -> int:
    return (bb >> sq) & 1


def _set_bit(bb: int, sq: int, value: int) -> int:
    return (bb & ~(1 << sq)) | (value << sq)


def _iter_bits(bb: int) -> Iterable[int]:
    while bb:
        lsb = bb & -bb
        yield lsb.bit_length() - 1
        bb ^= lsb


def _square_index(pos: Position) -> int:
    if not pos.in_board():
        raise ValueError(f"position outside the board: {pos}")
    return pos.x + pos.y * 8


def _index_position(sq: int) -> Position:
    return Position(sq % 8, sq // 8)


@dataclass(frozen=True)
class Board:
    """Immutable board packed into five 64-bit planes.

    Notes:
    - Square index is ``x + 8 * y``; ``y = 0`` is Black's back rank.
    - Planes 0..2 hold the piece kind bits, plane 3 the status bit and plane 4
      the color bit of every square.
    - Boards compare and hash structurally, so they can key the search cache.
    """

    planes: Tuple[int, ...] = (0,) * PLANE_COUNT

    def get(self, pos: Position) -> SquareContent:
        """Return the content of one square.

        Raises:
            ValueError: If ``pos`` is outside the board.
        """
        sq = _square_index(pos)
        code = 0
        for i, plane in enumerate(self.planes):
            code |= _get_bit(plane, sq) << i
        content = _DECODED[code]
        assert content is not None, f"corrupt square encoding at {pos}"
        return content

    def set(self, pos: Position, content: SquareContent) -> "Board":
        """Return a new board with ``content`` stored at ``pos``.

        Raises:
            ValueError: If ``pos`` is outside the board.
        """
        sq = _square_index(pos)
        code = content.code
        return Board(
            tuple(_set_bit(plane, sq, (code >> i) & 1) for i, plane in enumerate(self.planes))
        )

    def _occupied(self) -> int:
        occ = 0
        for i in range(PIECE_BITS):
            occ |= self.planes[i]
        return occ

    def _color_mask(self, color: Color) -> int:
        black = self.planes[COLOR_PLANE]
        return black if color is Color.BLACK else ~black

    def pieces_by_color(self, color: Color) -> List[Position]:
        """Positions of every piece of ``color``, in square index order."""
        mask = self._occupied() & self._color_mask(color)
        return [_index_position(sq) for sq in _iter_bits(mask)]

    def pieces(self, piece: Piece, color: Color) -> List[Position]:
        """Positions of every ``piece`` of ``color``, in square index order."""
        mask = self._occupied() & self._color_mask(color)
        for i in range(PIECE_BITS):
            plane = self.planes[i]
            mask &= plane if (piece.value >> i) & 1 else ~plane
        return [_index_position(sq) for sq in _iter_bits(mask)]

    def king_position(self, color: Color) -> Position:
        """Return the king square of ``color``.

        Raises:
            ValueError: If the board has no king of that color. Well-formed
                play never removes a king, so this signals a corrupt board.
        """
        kings = self.pieces(Piece.KING, color)
        if not kings:
            raise ValueError(f"no {color.name.lower()} king on board")
        return kings[0]

    def render(self) -> str:
        """Draw the board with Unicode pieces and 0..7 axes."""
        lines = ["  " + " ".join(str(x) for x in range(8))]
        for y in range(8):
            row = [str(y)]
            for x in range(8):
                content = self.get(Position(x, y))
                if content.piece is Piece.NONE:
                    row.append(" " if (x + y) % 2 == 0 else DARK_SQUARE)
                else:
                    row.append(PIECE_GLYPHS[content.color][content.piece])
            lines.append(" ".join(row))
        return "\n".join(lines)

    def to_fen(self, side_to_move: Color) -> str:
        """Serialize the board into FEN.

        Castling rights are derived from king/rook statuses and the en-passant
        target from the opponent's flagged pawn. Move counters are always
        ``0 1``.
        """
        ranks: List[str] = []
        for y in range(8):
            run = 0
            row: List[str] = []
            for x in range(8):
                content = self.get(Position(x, y))
                if content.piece is Piece.NONE:
                    run += 1
                    continue
                if run > 0:
                    row.append(str(run))
                    run = 0
                ch = PIECE_TO_CHAR[content.piece]
                row.append(ch.upper() if content.color is Color.WHITE else ch)
            if run > 0:
                row.append(str(run))
            ranks.append("".join(row))

        rights = "".join(
            right for right in "KQkq" if self._has_castling_right(*CASTLING_RIGHTS[right])
        )

        ep = "-"
        mover = side_to_move.other
        for pos in self.pieces(Piece.PAWN, mover):
            if self.get(pos).status is Status.EN_PASSANT_ALLOWED:
                behind = pos.y + 1 if mover is Color.WHITE else pos.y - 1
                ep = square_name(Position(pos.x, behind))
                break

        stm = "w" if side_to_move is Color.WHITE else "b"
        return f"{'/'.join(ranks)} {stm} {rights or '-'} {ep} 0 1"

    def _has_castling_right(self, color: Color, rook_x: int) -> bool:
        row = HOME_ROW[color]
        king = self.get(Position(KING_HOME_FILE, row))
        rook = self.get(Position(rook_x, row))
        return (
            king == SquareContent(Piece.KING, Status.DEFAULT, color)
            and rook == SquareContent(Piece.ROOK, Status.DEFAULT, color)
        )


def parse_fen(fen: str) -> Tuple[Board, Color]:
    """Create a board and the side to move from a FEN string.

    Args:
        fen (str): FEN with 4 or 6 fields; move counters are validated but
            not stored.

    Returns:
        Tuple[Board, Color]: Board and color to move.

    Raises:
        ValueError: If the placement, side to move, castling rights or en
            passant field is malformed or inconsistent with the placement.

    Notes:
        Kings and rooks start with castling rights revoked; each castling
        right then restores ``DEFAULT`` status on the king and the matching
        corner rook. The en-passant target flags the pawn that just
        double-pushed past it.
    """
    if not fen or not isinstance(fen, str):
        raise ValueError("FEN must be a non-empty string")
    parts = fen.strip().split()
    if len(parts) not in (4, 6):
        raise ValueError("FEN must have 4 or 6 fields")
    placement, stm, castling, ep = parts[:4]

    ranks = placement.split("/")
    if len(ranks) != 8:
        raise ValueError("FEN board must have 8 ranks")
    board = Board()
    for y, rank in enumerate(ranks):
        x = 0
        for ch in rank:
            if ch.isdigit():
                n = int(ch)
                if n < 1 or n > 8:
                    raise ValueError("invalid empty count in FEN rank")
                x += n
                continue
            piece = CHAR_TO_PIECE.get(ch.lower())
            if piece is None:
                raise ValueError(f"invalid piece in FEN: {ch!r}")
            if x >= 8:
                raise ValueError("too many squares in FEN rank")
            color = Color.WHITE if ch.isupper() else Color.BLACK
            status = (
                Status.CASTLING_NOT_ALLOWED
                if piece in (Piece.KING, Piece.ROOK)
                else Status.DEFAULT
            )
            board = board.set(Position(x, y), SquareContent(piece, status, color))
            x += 1
        if x != 8:
            raise ValueError("rank does not sum to 8 squares in FEN")

    if stm not in ("w", "b"):
        raise ValueError("side to move must be 'w' or 'b'")
    side_to_move = Color.WHITE if stm == "w" else Color.BLACK

    if castling != "-":
        for right in castling:
            if right not in CASTLING_RIGHTS:
                raise ValueError("invalid castling rights")
            color, rook_x = CASTLING_RIGHTS[right]
            row = HOME_ROW[color]
            king_pos = Position(KING_HOME_FILE, row)
            rook_pos = Position(rook_x, row)
            king = board.get(king_pos)
            rook = board.get(rook_pos)
            if king.piece is not Piece.KING or king.color is not color:
                raise ValueError(f"castling right {right!r} without king on its home square")
            if rook.piece is not Piece.ROOK or rook.color is not color:
                raise ValueError(f"castling right {right!r} without rook in the corner")
            board = board.set(king_pos, king.with_status(Status.DEFAULT))
            board = board.set(rook_pos, rook.with_status(Status.DEFAULT))

    if ep != "-":
        try:
            target = parse_square(ep)
        except ValueError as e:
            raise ValueError("invalid en passant square") from e
        # Rank 3 (y=5) sits behind a white pawn, rank 6 (y=2) behind a black one
        pawn_rows: Dict[int, Tuple[int, Color]] = {5: (4, Color.WHITE), 2: (3, Color.BLACK)}
        if target.y not in pawn_rows:
            raise ValueError("invalid en passant square rank")
        row, color = pawn_rows[target.y]
        pawn_pos = Position(target.x, row)
        pawn = board.get(pawn_pos)
        if pawn.piece is not Piece.PAWN or pawn.color is not color:
            raise ValueError("en passant square without a pawn that just double-pushed")
        board = board.set(pawn_pos, pawn.with_status(Status.EN_PASSANT_ALLOWED))

    if len(parts) == 6:
        try:
            halfmove, fullmove = int(parts[4]), int(parts[5])
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove < 0 or fullmove <= 0:
            raise ValueError("invalid move counters in FEN")

    return board, side_to_move


def _fill_initial_side(
    board: Board, pieces_row: int, pawns_row: int, color: Color, test_setup: bool
) -> Board:
    for x in range(8):
        board = board.set(Position(x, pawns_row), SquareContent(Piece.PAWN, Status.DEFAULT, color))
    board = board.set(Position(0, pieces_row), SquareContent(Piece.ROOK, Status.DEFAULT, color))
    board = board.set(Position(7, pieces_row), SquareContent(Piece.ROOK, Status.DEFAULT, color))
    board = board.set(
        Position(KING_HOME_FILE, pieces_row), SquareContent(Piece.KING, Status.DEFAULT, color)
    )
    if not test_setup:
        for x, piece in (
            (1, Piece.KNIGHT),
            (6, Piece.KNIGHT),
            (2, Piece.BISHOP),
            (5, Piece.BISHOP),
            (3, Piece.QUEEN),
        ):
            board = board.set(Position(x, pieces_row), SquareContent(piece, Status.DEFAULT, color))
    return board


def initial_board(use_test_setup: bool = False) -> Board:
    """Standard starting position, or the reduced pawns/rooks/kings layout."""
    board = Board()
    board = _fill_initial_side(board, 0, 1, Color.BLACK, use_test_setup)
    board = _fill_initial_side(board, 7, 6, Color.WHITE, use_test_setup)
    return board
