from __future__ import annotations

import pytest

from chessai.engine.move import (
    FullMove,
    Move,
    Position,
    parse_full_move,
    parse_square,
    square_name,
)


def test_square_names_follow_board_orientation() -> None:
    assert square_name(Position(0, 0)) == "a8"
    assert square_name(Position(7, 7)) == "h1"
    assert square_name(Position(4, 6)) == "e2"
    assert parse_square("e2") == Position(4, 6)
    assert parse_square("h8") == Position(7, 0)


@pytest.mark.parametrize("name", ["", "e", "i1", "a0", "a9", "e22"])
def test_parse_square_rejects_bad_names(name: str) -> None:
    with pytest.raises(ValueError):
        parse_square(name)


def test_square_name_rejects_off_board_positions() -> None:
    with pytest.raises(ValueError):
        square_name(Position(8, 0))


def test_full_move_target() -> None:
    fm = FullMove(Position(4, 6), Move(0, -2))
    assert fm.target == Position(4, 4)
    assert Position(1, 1).offset(Move(-2, 0)).in_board() is False


def test_parse_full_move() -> None:
    assert parse_full_move("4 6 0 -2") == FullMove(Position(4, 6), Move(0, -2))
    assert parse_full_move("  1 7   1 -2 ") == FullMove(Position(1, 7), Move(1, -2))


@pytest.mark.parametrize("text", ["", "4 6 0", "4 6 0 -2 1", "a b c d", "8 0 0 1"])
def test_parse_full_move_rejects_bad_input(text: str) -> None:
    with pytest.raises(ValueError):
        parse_full_move(text)
