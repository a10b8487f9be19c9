"""
Boundary layer data model(s).

The Replication/Service layer hands this snapshot to whatever renders the game (the presentation adapter),
so the presentation never needs to reach into the Session or Clock objects themselves.
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameSnapshot easier to read
PlayerName = str
PieceName = str
ClockText = str


@dataclass
class CellModel:
    owner: PlayerName
    kind: PieceName


@dataclass
class GameSnapshot:
    """Read-only view of a match after the last applied action."""

    board: list[Optional[CellModel]]
    reserves: dict[PlayerName, list[PieceName]]
    current_player: PlayerName
    status: str
    winner: Optional[PlayerName] = None
    winning_line: Optional[list[int]] = None
    clock_display: dict[PlayerName, ClockText] = field(default_factory=dict)
    active_clock: Optional[PlayerName] = None
    in_opening_phase: bool = False
    status_text: str = ""
    notice: Optional[str] = None
