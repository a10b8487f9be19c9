"""
Geometry/Base movement and capturing rules

Key idea: Use strategy pattern to define the movement rule for each piece kind.

The shared checks (no null move, a piece must stand on the starting cell, never land on your own piece)
are done once in `is_legal_move`; the rules only look at geometry and occupancy along the path.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.core.shared_types import PieceKind, Player
from src.tetrachess.pieces import Piece
from src.tetrachess.square import CELL_COUNT, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, index: int) -> Optional[Piece]: ...


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_index: int
    to_index: int

    @property
    def from_square(self) -> Square:
        return Square.from_index(self.from_index)

    @property
    def to_square(self) -> Square:
        return Square.from_index(self.to_index)

    @property
    def delta(self) -> tuple[int, int]:
        """signed (column, row) difference between the target and the starting cell"""
        return (
            self.to_square.col - self.from_square.col,
            self.to_square.row - self.from_square.row,
        )


MovementRuleFn = Callable[[Board, Move, Player], bool]


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def is_path_clear(board: Board, move: Move) -> bool:
    """
    Walk from the starting cell towards the target one step at a time.
    Only the cells strictly in between are inspected; the target itself is checked by the caller.

    NOTE: only meaningful for straight or diagonal lines.
    """
    dx, dy = move.delta
    step_x, step_y = _sign(dx), _sign(dy)
    square = move.from_square.offset(step_x, step_y)
    while square != move.to_square:
        if board.piece(square.to_index()) is not None:
            return False
        square = square.offset(step_x, step_y)
    return True


# --- MOVEMENT RULES ---
def pawn_rule(board: Board, move: Move, mover: Player) -> bool:
    """
    A pawn:
    - moves a single orthogonal step onto an empty cell (any direction, there is no 'forward')
    - captures a single diagonal step, and only onto an opponent's piece
    """
    dx, dy = move.delta
    adx, ady = abs(dx), abs(dy)
    target = board.piece(move.to_index)

    if adx + ady == 1:
        return target is None

    if adx == 1 and ady == 1:
        return target is not None and target.owner == mover.opponent

    return False


def king_rule(board: Board, move: Move, mover: Player) -> bool:
    """Any neighbouring cell, diagonals included. No check concept in this game."""
    dx, dy = move.delta
    return abs(dx) <= 1 and abs(dy) <= 1


def rook_rule(board: Board, move: Move, mover: Player) -> bool:
    """Rooks stay on their row or column and cannot jump"""
    dx, dy = move.delta
    if dx != 0 and dy != 0:
        return False
    return is_path_clear(board, move)


def bishop_rule(board: Board, move: Move, mover: Player) -> bool:
    """Bishops move diagonally: |dx| = |dy|"""
    dx, dy = move.delta
    if abs(dx) != abs(dy):
        return False
    return is_path_clear(board, move)


def queen_rule(board: Board, move: Move, mover: Player) -> bool:
    """The Queen combines the rook and bishop movement"""
    return rook_rule(board, move, mover) or bishop_rule(board, move, mover)


def knight_rule(board: Board, move: Move, mover: Player) -> bool:
    """Knights jump: (|dx|, |dy|) is (2, 1) or (1, 2). Never blocked."""
    dx, dy = move.delta
    return (abs(dx), abs(dy)) in {(2, 1), (1, 2)}


MOVEMENT_RULES: dict[PieceKind, MovementRuleFn] = {
    PieceKind.PAWN: pawn_rule,
    PieceKind.KING: king_rule,
    PieceKind.ROOK: rook_rule,
    PieceKind.BISHOP: bishop_rule,
    PieceKind.QUEEN: queen_rule,
    PieceKind.KNIGHT: knight_rule,
}


def is_legal_move(board: Board, move: Move, mover: Player) -> bool:
    """Pure legality check of moving the piece on `move.from_index` to `move.to_index` for `mover`."""
    if not (0 <= move.from_index < CELL_COUNT and 0 <= move.to_index < CELL_COUNT):
        return False
    if move.from_index == move.to_index:
        return False

    piece = board.piece(move.from_index)
    if piece is None:
        return False

    target = board.piece(move.to_index)
    if target is not None and target.owner == mover:
        return False

    movement_rule = MOVEMENT_RULES[piece.kind]
    return movement_rule(board, move, mover)
