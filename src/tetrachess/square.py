"""
A square (cell) on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Board is always 4x4. Cells are addressed by index 0-15, row-major.
BOARD_SIZE = 4
CELL_COUNT = BOARD_SIZE * BOARD_SIZE


@dataclass(frozen=True)
class Square:
    col: int
    row: int

    @classmethod
    def from_index(cls, index: int) -> Square:
        """index 0 is the top-left cell, index 3 the top-right, index 15 the bottom-right"""
        return cls(index % BOARD_SIZE, index // BOARD_SIZE)

    def to_index(self) -> int:
        return self.row * BOARD_SIZE + self.col

    def offset(self, dcol: int, drow: int) -> Square:
        return Square(self.col + dcol, self.row + drow)


def is_valid_index(index: int) -> bool:
    return 0 <= index < CELL_COUNT
