from __future__ import annotations

from typing import List

from .board import (
    EMPTY,
    KING_HOME_FILE,
    Board,
    Color,
    Piece,
    SquareContent,
    Status,
)
from .move import FullMove, Move, Position
from .topology import (
    MOVE_TOPOLOGY,
    PAWN_DIRECTION,
    PAWN_START_ROW,
    PROMOTION_ROW,
    MoveTopology,
)


PROMOTION_PIECES = (Piece.QUEEN, Piece.ROOK, Piece.BISHOP, Piece.KNIGHT)

# Pieces found by walking their own rays outward from the attacked square
_RAY_ATTACKERS = (Piece.KNIGHT, Piece.BISHOP, Piece.ROOK, Piece.QUEEN, Piece.KING)


def _reset_pawn_status(board: Board, color: Color) -> Board:
    """Clear the en-passant flag on every pawn of ``color``."""
    for pos in board.pieces(Piece.PAWN, color):
        info = board.get(pos)
        if info.status is not Status.DEFAULT:
            board = board.set(pos, info.with_status(Status.DEFAULT))
    return board


def apply_simple_move(board: Board, full_move: FullMove, update_status: bool = True) -> Board:
    """Move one piece, capturing whatever stands on the target square.

    Args:
        board (Board): Board before the move.
        full_move (FullMove): Origin and relative move; assumed valid.
        update_status (bool): Run the castling/en-passant bookkeeping. The
            mover's pawns lose their en-passant flag, kings and rooks lose
            castling rights, and a pawn double push becomes capturable en
            passant.

    Returns:
        Board: New board; ``board`` is left untouched.
    """
    info = board.get(full_move.pos)

    if update_status:
        board = _reset_pawn_status(board, info.color)
        if info.piece in (Piece.KING, Piece.ROOK):
            info = info.with_status(Status.CASTLING_NOT_ALLOWED)
        elif info.piece is Piece.PAWN:
            if abs(full_move.move.dy) == 2:
                info = info.with_status(Status.EN_PASSANT_ALLOWED)
            else:
                info = info.with_status(Status.DEFAULT)

    board = board.set(full_move.pos, EMPTY)
    return board.set(full_move.target, info)


def apply_castling(board: Board, king_position: Position, direction: int) -> Board:
    """Move king and rook for castling towards ``direction`` (-1 or +1).

    The king moves two squares and the rook lands on the square the king
    crossed; both end with castling rights revoked. Validity is assumed.
    """
    if direction not in (-1, 1):
        raise ValueError(f"castling direction must be -1 or 1, got {direction}")
    y = king_position.y
    if direction < 0:
        rook_move = FullMove(Position(0, y), Move(3, 0))
    else:
        rook_move = FullMove(Position(7, y), Move(-2, 0))
    board = apply_simple_move(board, rook_move, True)
    return apply_simple_move(board, FullMove(king_position, Move(2 * direction, 0)), True)


def apply_en_passant(board: Board, full_move: FullMove, update_status: bool = True) -> Board:
    """Capture en passant: the victim is removed from beside the origin."""
    target = full_move.target
    board = apply_simple_move(board, full_move, update_status)
    return board.set(Position(target.x, full_move.pos.y), EMPTY)


def apply_pawn_promotion(
    board: Board, full_move: FullMove, chosen_piece: Piece, update_status: bool = True
) -> Board:
    """Move a pawn onto the back row and replace it with ``chosen_piece``.

    A promoted rook never holds castling rights.

    Raises:
        ValueError: If ``chosen_piece`` is not a promotion piece.
    """
    if chosen_piece not in PROMOTION_PIECES:
        raise ValueError(f"cannot promote to {chosen_piece.name.lower()}")
    info = board.get(full_move.pos)
    board = apply_simple_move(board, full_move, update_status)
    status = Status.CASTLING_NOT_ALLOWED if chosen_piece is Piece.ROOK else Status.DEFAULT
    return board.set(full_move.target, SquareContent(chosen_piece, status, info.color))


def is_under_attack(
    board: Board, pos: Position, color: Color, topology: MoveTopology = MOVE_TOPOLOGY
) -> bool:
    """Return True if a piece of ``color`` standing on ``pos`` would be attacked.

    Pawns attack their two forward diagonals; every other piece attacks along
    its rays up to and including the first occupied square. For an occupied
    square this matches "some enemy move generated in quick mode lands on
    ``pos``"; for the empty squares crossed by castling it is the usual chess
    notion of an attacked square.
    """
    enemy = color.other

    # An enemy pawn attacks pos from one row behind it, seen from its side
    dy = PAWN_DIRECTION[enemy]
    for dx in (-1, 1):
        origin = Position(pos.x - dx, pos.y - dy)
        if origin.in_board():
            info = board.get(origin)
            if info.piece is Piece.PAWN and info.color is enemy:
                return True

    # Non-pawn rays are symmetric, so walking them outward finds the attacker
    for piece in _RAY_ATTACKERS:
        for seq in topology.sequences(enemy, piece):
            for move in seq:
                target = pos.offset(move)
                if not target.in_board():
                    break
                info = board.get(target)
                if info.piece is Piece.NONE:
                    continue
                if info.piece is piece and info.color is enemy:
                    return True
                break
    return False


def _king_attacked(board: Board, color: Color, topology: MoveTopology) -> bool:
    return is_under_attack(board, board.king_position(color), color, topology)


def _pawn_results(
    board: Board,
    info: SquareContent,
    full_move: FullMove,
    en_passant: bool,
    update_status: bool,
) -> List[Board]:
    # A pawn reaching the back row expands into one board per promotion piece
    if full_move.target.y != PROMOTION_ROW[info.color]:
        if en_passant:
            return [apply_en_passant(board, full_move, update_status)]
        return [apply_simple_move(board, full_move, update_status)]
    return [
        apply_pawn_promotion(board, full_move, piece, update_status)
        for piece in PROMOTION_PIECES
    ]


def _pawn_captures(
    board: Board, pos: Position, info: SquareContent, update_status: bool
) -> List[Board]:
    """Diagonal captures, including en passant, for one pawn."""
    dy = PAWN_DIRECTION[info.color]
    results: List[Board] = []
    for dx in (-1, 1):
        target = Position(pos.x + dx, pos.y + dy)
        if not target.in_board():
            continue
        full_move = FullMove(pos, Move(dx, dy))
        victim = board.get(target)
        if victim.piece is not Piece.NONE:
            if victim.color is not info.color:
                results.extend(_pawn_results(board, info, full_move, False, update_status))
            continue
        beside = board.get(Position(target.x, pos.y))
        if (
            beside.piece is Piece.PAWN
            and beside.color is not info.color
            and beside.status is Status.EN_PASSANT_ALLOWED
        ):
            results.extend(_pawn_results(board, info, full_move, True, update_status))
    return results


def _castling_moves(
    board: Board, king_pos: Position, king: SquareContent, topology: MoveTopology
) -> List[Board]:
    if king.status is not Status.DEFAULT or king_pos.x != KING_HOME_FILE:
        return []
    results: List[Board] = []
    y = king_pos.y
    for direction in (-1, 1):
        rook_pos = Position(0 if direction < 0 else 7, y)
        rook = board.get(rook_pos)
        if (
            rook.piece is not Piece.ROOK
            or rook.status is not Status.DEFAULT
            or rook.color is not king.color
        ):
            continue
        between = range(king_pos.x + direction, rook_pos.x, direction)
        if any(board.get(Position(x, y)).piece is not Piece.NONE for x in between):
            continue
        # King square plus the two squares it crosses
        path = (Position(king_pos.x + i * direction, y) for i in range(3))
        if any(is_under_attack(board, p, king.color, topology) for p in path):
            continue
        results.append(apply_castling(board, king_pos, direction))
    return results


def possible_moves_for_piece(
    board: Board,
    pos: Position,
    filter_checks: bool = True,
    quick_mode: bool = False,
    topology: MoveTopology = MOVE_TOPOLOGY,
) -> List[Board]:
    """Return every board reachable by one move of the piece on ``pos``.

    Args:
        board (Board): Current board.
        pos (Position): Square of the piece to move; an empty square yields
            no moves.
        filter_checks (bool): Drop boards that leave the mover's king
            attacked.
        quick_mode (bool): Skip castling and status bookkeeping; used when
            only raw reachability matters.
        topology (MoveTopology): Ray tables to walk.

    Returns:
        List[Board]: Resulting boards, promotions expanded into one board per
            promotion piece.

    Raises:
        ValueError: If ``filter_checks`` is set and the mover has no king.
    """
    info = board.get(pos)
    if info.piece is Piece.NONE:
        return []

    moves: List[Move] = []
    for seq in topology.sequences(info.color, info.piece):
        for move in seq:
            target = pos.offset(move)
            if not target.in_board():
                break
            here = board.get(target)
            if here.piece is Piece.NONE:
                moves.append(move)
                continue
            # Pawns never capture straight ahead
            if here.color is not info.color and info.piece is not Piece.PAWN:
                moves.append(move)
            break

    update_status = not quick_mode
    boards: List[Board]
    if info.piece is Piece.PAWN:
        # The ray lists single then double push; the double only counts from the start row
        if pos.y != PAWN_START_ROW[info.color]:
            moves = moves[:1]
        boards = []
        for move in moves:
            boards.extend(_pawn_results(board, info, FullMove(pos, move), False, update_status))
        boards.extend(_pawn_captures(board, pos, info, update_status))
    else:
        boards = [apply_simple_move(board, FullMove(pos, m), update_status) for m in moves]
        if info.piece is Piece.KING and not quick_mode:
            boards.extend(_castling_moves(board, pos, info, topology))

    if filter_checks:
        boards = [b for b in boards if not _king_attacked(b, info.color, topology)]
    return boards


def all_possible_moves(
    board: Board,
    color: Color,
    filter_checks: bool = True,
    quick_mode: bool = False,
    topology: MoveTopology = MOVE_TOPOLOGY,
) -> List[Board]:
    """Union of :func:`possible_moves_for_piece` over every piece of ``color``."""
    boards: List[Board] = []
    for pos in board.pieces_by_color(color):
        boards.extend(possible_moves_for_piece(board, pos, filter_checks, quick_mode, topology))
    return boards


def possible_move_count(
    board: Board,
    color: Color,
    filter_checks: bool = True,
    topology: MoveTopology = MOVE_TOPOLOGY,
) -> int:
    """Number of moves available to ``color``.

    Counted in quick mode, except that kings still count their castling
    moves, so a side whose only legal move is castling is not reported as
    mated or stalemated.
    """
    count = 0
    for pos in board.pieces_by_color(color):
        quick_mode = board.get(pos).piece is not Piece.KING
        count += len(possible_moves_for_piece(board, pos, filter_checks, quick_mode, topology))
    return count


def is_legal_result(board: Board, origin: Position, candidate: Board) -> bool:
    """Return True if ``candidate`` is a legal result of moving the piece on ``origin``."""
    if not origin.in_board():
        return False
    return candidate in possible_moves_for_piece(board, origin, True, False)
