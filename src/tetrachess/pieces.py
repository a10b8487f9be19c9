"""Defines the pieces that can sit on a cell"""

from dataclasses import dataclass
from typing import Self

from src.core.shared_types import PieceKind, Player

NOTATION_TO_KIND: dict[str, PieceKind] = {
    "p": PieceKind.PAWN,
    "r": PieceKind.ROOK,
    "b": PieceKind.BISHOP,
    "n": PieceKind.KNIGHT,
    "q": PieceKind.QUEEN,
    "k": PieceKind.KING,
}

KIND_TO_NOTATION: dict[PieceKind, str] = {
    value: key for key, value in NOTATION_TO_KIND.items()
}


@dataclass(frozen=True)
class Piece:
    owner: Player
    kind: PieceKind

    @classmethod
    def from_notation(cls, character: str) -> Self:
        # upper case: White pieces, lower case: Black pieces
        owner = Player.WHITE if character.isupper() else Player.BLACK
        return cls(owner, NOTATION_TO_KIND[character.lower()])

    def to_notation(self) -> str:
        character = KIND_TO_NOTATION[self.kind]
        return character.upper() if self.owner == Player.WHITE else character
