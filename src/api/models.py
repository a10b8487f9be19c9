"""Requests and Response models exchanged with the presentation adapter"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import PieceKind, Player
from src.tetrachess.square import CELL_COUNT

PlayerName = str
PieceName = str


# --- REQUEST MODELS ---
class CellTapRequest(BaseModel):
    index: int

    @field_validator("index")
    @classmethod
    def validate_index(cls, value: int) -> int:
        if not 0 <= value < CELL_COUNT:
            raise InvalidRequestError(
                f"Cannot interpret cell index: {value!r}. Must be 0-{CELL_COUNT - 1}."
            )
        return value


class ReserveTapRequest(BaseModel):
    player: Player
    kind: PieceKind


class StartRequest(BaseModel):
    """Raw values of the options menu. Clamped/defaulted by GameSettings, never rejected."""

    settings: dict[str, Any] = {}


class JoinRoomRequest(BaseModel):
    code: str


# --- RESPONSE MODELS ---
class CellResponse(BaseModel):
    owner: PlayerName
    kind: PieceName


class GameResponse(BaseModel):
    board: list[Optional[CellResponse]]
    reserves: dict[PlayerName, list[PieceName]]
    current_player: PlayerName
    status: str
    winner: Optional[PlayerName]
    winning_line: Optional[list[int]]
    clock_display: dict[PlayerName, str]
    active_clock: Optional[PlayerName]
    in_opening_phase: bool
    selected_cell: Optional[int]
    selected_reserve_piece: Optional[PieceName]
    highlighted_cells: list[int]
    status_text: str
    notice: Optional[str]
    online_status: str
    room_code: Optional[str]
    role: Optional[PlayerName]
    my_turn: bool
    flip_black: bool
