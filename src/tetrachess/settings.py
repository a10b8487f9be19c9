"""
Options chosen before a game starts.

Settings are read once when a session starts (locally, or received from the host through a `sync-settings` action)
and never change while the session runs. Malformed or partial input is clamped/defaulted instead of rejected:
a game must always be startable.
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.shared_types import DEFAULT_RESERVE, PieceKind, PieceMode

MIN_CLOCK_SECONDS = 10
DEFAULT_CLOCK_SECONDS = 180
MAX_OPENING_TURNS = 4
RESERVE_SIZE = 4


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class GameSettings(BaseModel):
    """Wire names follow the camelCase keys the relay peers exchange."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    piece_mode: PieceMode = Field(default=PieceMode.CLASSIC, alias="pieceMode")
    custom_pieces: tuple[PieceKind, ...] = Field(
        default=DEFAULT_RESERVE, alias="customPieces"
    )
    clock_on: bool = Field(default=False, alias="clockOn")
    clock_seconds: int = Field(default=DEFAULT_CLOCK_SECONDS, alias="clockSeconds")
    clock_increment: int = Field(default=0, alias="clockIncrement")
    opening_turns: int = Field(default=0, alias="openingTurns")
    flip_black: bool = Field(default=False, alias="flipBlack")

    @field_validator("piece_mode", mode="before")
    @classmethod
    def default_unknown_piece_mode(cls, value: Any) -> Any:
        if value not in PieceMode.__members__.values():
            return PieceMode.CLASSIC
        return value

    @field_validator("custom_pieces", mode="before")
    @classmethod
    def fallback_to_default_pieces(cls, value: Any) -> Any:
        """Anything but exactly 4 known piece kinds falls back to the classic set. Duplicates are fine."""
        if not isinstance(value, (list, tuple)):
            return DEFAULT_RESERVE
        kinds = [kind for kind in value if kind]
        if len(kinds) != RESERVE_SIZE:
            return DEFAULT_RESERVE
        if any(kind not in PieceKind.__members__.values() for kind in kinds):
            return DEFAULT_RESERVE
        return tuple(kinds)

    @field_validator("clock_on", "flip_black", mode="before")
    @classmethod
    def coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "on", "yes"}
        return bool(value)

    @field_validator("clock_seconds", mode="before")
    @classmethod
    def clamp_clock_seconds(cls, value: Any) -> int:
        return max(MIN_CLOCK_SECONDS, _to_int(value, DEFAULT_CLOCK_SECONDS))

    @field_validator("clock_increment", mode="before")
    @classmethod
    def clamp_clock_increment(cls, value: Any) -> int:
        return max(0, _to_int(value, 0))

    @field_validator("opening_turns", mode="before")
    @classmethod
    def clamp_opening_turns(cls, value: Any) -> int:
        return min(MAX_OPENING_TURNS, max(0, _to_int(value, 0)))

    def initial_reserve(self) -> list[PieceKind]:
        """A fresh copy of the pieces each player starts with."""
        if self.piece_mode == PieceMode.CLASSIC:
            return list(DEFAULT_RESERVE)
        return list(self.custom_pieces[:RESERVE_SIZE])

    def merged(self, overrides: dict[str, Any]) -> Self:
        """Apply a (possibly partial) settings payload on top of these settings."""
        return type(self).model_validate(
            {**self.model_dump(by_alias=True), **overrides}
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
