"""Unit tests for /src/tetrachess/square.py"""

import pytest

from src.tetrachess.square import BOARD_SIZE, CELL_COUNT, Square, is_valid_index


@pytest.mark.parametrize(
    "index, col, row",
    [(index, index % BOARD_SIZE, index // BOARD_SIZE) for index in range(CELL_COUNT)],
)
def test_square_from_index(index: int, col: int, row: int) -> None:
    """Row-major: index 0 is the top-left corner, index 4 starts the second row"""
    square = Square.from_index(index)
    assert square.col == col
    assert square.row == row
    assert square.to_index() == index


def test_offset() -> None:
    assert Square(1, 1).offset(1, -1) == Square(2, 0)


def test_valid_indices() -> None:
    assert all(is_valid_index(index) for index in range(CELL_COUNT))
    assert not is_valid_index(-1)
    assert not is_valid_index(CELL_COUNT)
