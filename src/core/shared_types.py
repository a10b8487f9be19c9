"""
Type definitions used across layers
"""

from enum import StrEnum


class Player(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Player":
        return Player.BLACK if self == Player.WHITE else Player.WHITE

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class PieceKind(StrEnum):
    PAWN = "pawn"
    ROOK = "rook"
    BISHOP = "bishop"
    KNIGHT = "knight"
    QUEEN = "queen"
    KING = "king"


class PieceMode(StrEnum):
    CLASSIC = "classic"
    CUSTOM = "custom"


class Status(StrEnum):
    CONFIGURING = "configuring"
    IN_PROGRESS = "in progress"
    WIN = "win"
    DRAW = "draw"
    TIMEOUT = "timeout"


# Reserve handed out in classic mode (and the fallback for a malformed custom set)
DEFAULT_RESERVE: tuple[PieceKind, ...] = (
    PieceKind.PAWN,
    PieceKind.ROOK,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
)
