from __future__ import annotations

import pytest

from chessai.engine.board import (
    DARK_SQUARE,
    EMPTY,
    TEST_SETUP_FEN,
    Board,
    Color,
    Piece,
    SquareContent,
    Status,
    initial_board,
    parse_fen,
)
from chessai.engine.move import Position


def test_set_then_get_returns_the_stored_content() -> None:
    board = Board()
    samples = [
        (Position(0, 0), SquareContent(Piece.ROOK, Status.CASTLING_NOT_ALLOWED, Color.BLACK)),
        (Position(7, 7), SquareContent(Piece.KING, Status.DEFAULT, Color.WHITE)),
        (Position(3, 4), SquareContent(Piece.PAWN, Status.EN_PASSANT_ALLOWED, Color.WHITE)),
        (Position(5, 2), SquareContent(Piece.QUEEN, Status.DEFAULT, Color.BLACK)),
        (Position(6, 1), SquareContent(Piece.KNIGHT, Status.DEFAULT, Color.WHITE)),
    ]
    for pos, content in samples:
        board = board.set(pos, content)
    for pos, content in samples:
        assert board.get(pos) == content


def test_set_returns_a_new_board_and_keeps_other_squares() -> None:
    board = initial_board()
    moved = board.set(Position(4, 4), SquareContent(Piece.QUEEN, Status.DEFAULT, Color.WHITE))
    assert board.get(Position(4, 4)) == EMPTY
    for y in range(8):
        for x in range(8):
            if (x, y) != (4, 4):
                assert moved.get(Position(x, y)) == board.get(Position(x, y))


def test_overwriting_with_empty_clears_the_square() -> None:
    board = initial_board()
    cleared = board.set(Position(3, 7), EMPTY)
    assert cleared.get(Position(3, 7)) == EMPTY
    assert cleared.pieces(Piece.QUEEN, Color.WHITE) == []


def test_square_content_is_normalized() -> None:
    assert SquareContent(Piece.NONE, Status.FLAGGED, Color.BLACK) == EMPTY
    knight = SquareContent(Piece.KNIGHT, Status.FLAGGED, Color.BLACK)
    assert knight.status is Status.DEFAULT
    rook = SquareContent(Piece.ROOK, Status.FLAGGED, Color.BLACK)
    assert rook.status is Status.CASTLING_NOT_ALLOWED


def test_equal_layouts_are_equal_and_hash_alike() -> None:
    a = initial_board()
    b, _ = parse_fen("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1")
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


@pytest.mark.parametrize("pos", [Position(-1, 0), Position(0, 8), Position(8, 3)])
def test_out_of_range_positions_raise(pos: Position) -> None:
    board = Board()
    with pytest.raises(ValueError):
        board.get(pos)
    with pytest.raises(ValueError):
        board.set(pos, EMPTY)


def test_initial_layout() -> None:
    board = initial_board()
    assert len(board.pieces_by_color(Color.WHITE)) == 16
    assert len(board.pieces_by_color(Color.BLACK)) == 16
    assert board.king_position(Color.WHITE) == Position(4, 7)
    assert board.king_position(Color.BLACK) == Position(4, 0)
    assert board.get(Position(3, 7)) == SquareContent(Piece.QUEEN, Status.DEFAULT, Color.WHITE)
    assert board.get(Position(3, 0)) == SquareContent(Piece.QUEEN, Status.DEFAULT, Color.BLACK)
    assert all(board.get(Position(x, 6)).piece is Piece.PAWN for x in range(8))
    assert all(board.get(Position(x, 1)).color is Color.BLACK for x in range(8))


def test_test_setup_has_only_pawns_rooks_and_kings() -> None:
    board = initial_board(use_test_setup=True)
    for color in Color:
        kinds = {board.get(pos).piece for pos in board.pieces_by_color(color)}
        assert kinds == {Piece.PAWN, Piece.ROOK, Piece.KING}
        assert len(board.pieces_by_color(color)) == 11
    assert board == parse_fen(TEST_SETUP_FEN)[0]


def test_pieces_filters_by_kind_and_color() -> None:
    board = initial_board()
    assert board.pieces(Piece.KNIGHT, Color.WHITE) == [Position(1, 7), Position(6, 7)]
    assert board.pieces(Piece.ROOK, Color.BLACK) == [Position(0, 0), Position(7, 0)]
    assert len(board.pieces(Piece.PAWN, Color.BLACK)) == 8


def test_missing_king_raises() -> None:
    board = initial_board().set(Position(4, 0), EMPTY)
    with pytest.raises(ValueError):
        board.king_position(Color.BLACK)
    assert board.king_position(Color.WHITE) == Position(4, 7)


def test_render_draws_axes_and_pieces() -> None:
    text = initial_board().render()
    lines = text.split("\n")
    assert len(lines) == 9
    assert lines[0] == "  0 1 2 3 4 5 6 7"
    assert lines[1] == "0 ♜ ♞ ♝ ♛ ♚ ♝ ♞ ♜"
    assert lines[8] == "7 ♖ ♘ ♗ ♕ ♔ ♗ ♘ ♖"
    # Half of the 32 empty squares are dark
    assert text.count(DARK_SQUARE) == 16
