"""The Game board implements all rules that depend only on the `cells` (the configuration of pieces on the grid)"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.core.shared_types import Player
from src.tetrachess.moves import Move, is_legal_move
from src.tetrachess.pieces import Piece
from src.tetrachess.square import BOARD_SIZE, CELL_COUNT

# 4 rows, 4 columns and the 2 main diagonals. The scan order decides which line is reported when several complete at once.
WIN_LINES: tuple[tuple[int, int, int, int], ...] = (
    (0, 1, 2, 3),
    (4, 5, 6, 7),
    (8, 9, 10, 11),
    (12, 13, 14, 15),
    (0, 4, 8, 12),
    (1, 5, 9, 13),
    (2, 6, 10, 14),
    (3, 7, 11, 15),
    (0, 5, 10, 15),
    (3, 6, 9, 12),
)

EMPTY_NOTATION = "."


@dataclass(frozen=True)
class WinResult:
    owner: Player
    line: tuple[int, int, int, int]


def _empty_cells() -> list[Optional[Piece]]:
    return [None] * CELL_COUNT


@dataclass
class Board:
    cells: list[Optional[Piece]] = field(default_factory=_empty_cells)

    def __post_init__(self) -> None:
        if len(self.cells) != CELL_COUNT:
            raise ValueError(
                f"A board has exactly {CELL_COUNT} cells, got {len(self.cells)}."
            )

    @classmethod
    def from_notation(cls, notation: str) -> Self:
        """Construct a board from its compact text form.

        Rows are separated by slashes and read top (index 0-3) to bottom (index 12-15).
        ex. "PRBN/..../..../...k" means:
        * White pawn, rook, bishop and knight on cells 0-3
        * a Black king on cell 15
        * everything else is empty
        """
        cells: list[Optional[Piece]] = []
        for row in notation.split("/"):
            for character in row:
                cells.append(
                    None if character == EMPTY_NOTATION else Piece.from_notation(character)
                )
        return cls(cells)

    def to_notation(self) -> str:
        rows: list[str] = []
        for start in range(0, CELL_COUNT, BOARD_SIZE):
            rows.append(
                "".join(
                    piece.to_notation() if piece else EMPTY_NOTATION
                    for piece in self.cells[start : start + BOARD_SIZE]
                )
            )
        return "/".join(rows)

    def piece(self, index: int) -> Optional[Piece]:
        return self.cells[index]

    def is_empty(self, index: int) -> bool:
        return self.cells[index] is None

    def locate_player(self, player: Player) -> list[int]:
        return [
            index
            for index, piece in enumerate(self.cells)
            if piece is not None and piece.owner == player
        ]

    def count_pieces(self, player: Player) -> int:
        return len(self.locate_player(player))

    # --- RULE ENGINE ---
    def is_legal_move(self, from_index: int, to_index: int, mover: Player) -> bool:
        return is_legal_move(self, Move(from_index, to_index), mover)

    def legal_destinations(self, from_index: int, mover: Player) -> list[int]:
        """Every cell the piece on `from_index` could move to (used to highlight targets of a selected piece)."""
        return [
            to_index
            for to_index in range(CELL_COUNT)
            if self.is_legal_move(from_index, to_index, mover)
        ]

    def is_full(self) -> bool:
        return all(piece is not None for piece in self.cells)

    def find_winner(self) -> Optional[WinResult]:
        """First line (in scan order) whose four cells all belong to one player. The kind of piece does not matter."""
        for line in WIN_LINES:
            pieces = [self.cells[index] for index in line]
            if any(piece is None for piece in pieces):
                continue
            owner = pieces[0].owner
            if all(piece.owner == owner for piece in pieces):
                return WinResult(owner, line)
        return None

    # --- MUTATIONS (only called by the Session after it validated the action) ---
    def place_piece(self, index: int, piece: Piece) -> None:
        self.cells[index] = piece

    def move_piece(self, move: Move) -> Optional[Piece]:
        """Update the cells and return the captured piece (if any)"""
        captured = self.cells[move.to_index]
        self.cells[move.to_index] = self.cells[move.from_index]
        self.cells[move.from_index] = None
        return captured
