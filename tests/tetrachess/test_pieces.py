"""Unit tests for /src/tetrachess/pieces.py"""

import pytest

from src.core.shared_types import PieceKind, Player
from src.tetrachess.pieces import KIND_TO_NOTATION, Piece


@pytest.mark.parametrize("kind", list(PieceKind))
def test_white_pieces_use_upper_case(kind: PieceKind) -> None:
    piece = Piece(Player.WHITE, kind)
    assert piece.to_notation() == KIND_TO_NOTATION[kind].upper()
    assert Piece.from_notation(piece.to_notation()) == piece


@pytest.mark.parametrize("kind", list(PieceKind))
def test_black_pieces_use_lower_case(kind: PieceKind) -> None:
    piece = Piece(Player.BLACK, kind)
    assert piece.to_notation() == KIND_TO_NOTATION[kind]
    assert Piece.from_notation(piece.to_notation()) == piece


def test_knight_is_n() -> None:
    assert Piece.from_notation("N") == Piece(Player.WHITE, PieceKind.KNIGHT)
    assert Piece.from_notation("k") == Piece(Player.BLACK, PieceKind.KING)
