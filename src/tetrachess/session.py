"""
The Session is the state machine of a single game: it owns the board, the reserves, whose turn it is,
the opening phase counters, the clock, and the outcome.

Placement and movement are validated completely BEFORE anything is mutated. A rejected action raises a
`GameError` and leaves the session exactly as it was (no turn advance); the caller decides what to show.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Self

from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    IllegalPlacementError,
    OpeningPhaseError,
)
from src.core.models import CellModel, GameSnapshot
from src.core.shared_types import PieceKind, Player, Status
from src.tetrachess.board import Board, WinResult
from src.tetrachess.clock import TICK_SECONDS, Clock, Scheduler
from src.tetrachess.moves import Move
from src.tetrachess.pieces import Piece
from src.tetrachess.settings import GameSettings
from src.tetrachess.square import is_valid_index

logger = logging.getLogger(__name__)

OPENING_PHASE_NOTICE = "Opening phase: place pieces before moving"


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Player] = None
    line: Optional[tuple[int, int, int, int]] = None


IN_PROGRESS = Outcome(Status.IN_PROGRESS)


@dataclass
class Session:
    # --- DOMAIN LAYER API CALLED BY REPLICATION ---

    settings: GameSettings
    board: Board
    reserves: dict[Player, list[PieceKind]]
    clock: Clock
    current_player: Player = Player.WHITE
    turn_count: dict[Player, int] = field(
        default_factory=lambda: {Player.WHITE: 0, Player.BLACK: 0}
    )
    outcome: Outcome = IN_PROGRESS

    def __post_init__(self) -> None:
        self.clock.on_expired = self._time_expired

    @classmethod
    def new(
        cls,
        settings: GameSettings,
        scheduler: Scheduler,
        tick_seconds: float = TICK_SECONDS,
    ) -> Self:
        """The one deterministic reset routine: same settings in, same fresh session out."""
        return cls(
            settings=settings,
            board=Board(),
            reserves={
                Player.WHITE: settings.initial_reserve(),
                Player.BLACK: settings.initial_reserve(),
            },
            clock=Clock.from_settings(settings, scheduler, tick_seconds),
        )

    # --- QUERIES ---
    @property
    def is_finished(self) -> bool:
        return self.outcome.status != Status.IN_PROGRESS

    @property
    def in_opening_phase(self) -> bool:
        opening_turns = self.settings.opening_turns
        return opening_turns > 0 and any(
            count < opening_turns for count in self.turn_count.values()
        )

    @property
    def winning_line(self) -> Optional[tuple[int, int, int, int]]:
        return self.outcome.line

    def count_on_board(self, player: Player) -> int:
        return self.board.count_pieces(player)

    def can_move_from(self, index: int) -> bool:
        """The current player owns the piece on this cell"""
        piece = self.board.piece(index) if is_valid_index(index) else None
        return piece is not None and piece.owner == self.current_player

    def status_text(self) -> str:
        winner = self.outcome.winner
        if self.outcome.status == Status.WIN and winner:
            return f"{winner.display_name} wins!"
        if self.outcome.status == Status.DRAW:
            return "Draw!"
        if self.outcome.status == Status.TIMEOUT and winner:
            return f"{winner.display_name} wins on time!"

        name = self.current_player.display_name
        if self.in_opening_phase:
            return (
                f"{name}'s turn, place a piece "
                f"({self.turn_count[self.current_player]}/{self.settings.opening_turns})"
            )
        return f"{name}'s turn"

    def to_snapshot(self, notice: Optional[str] = None) -> GameSnapshot:
        """Encode into the read-only format the presentation uses"""
        return GameSnapshot(
            board=[
                CellModel(owner=piece.owner.value, kind=piece.kind.value)
                if piece
                else None
                for piece in self.board.cells
            ],
            reserves={
                player.value: [kind.value for kind in reserve]
                for player, reserve in self.reserves.items()
            },
            current_player=self.current_player.value,
            status=self.outcome.status.value,
            winner=self.outcome.winner.value if self.outcome.winner else None,
            winning_line=list(self.outcome.line) if self.outcome.line else None,
            clock_display=(
                {player.value: self.clock.display(player) for player in Player}
                if self.settings.clock_on
                else {}
            ),
            active_clock=(
                self.clock.ticking_player.value
                if self.clock.ticking_player and not self.is_finished
                else None
            ),
            in_opening_phase=self.in_opening_phase,
            status_text=self.status_text(),
            notice=notice,
        )

    # --- TRANSITIONS ---
    def place(self, index: int, kind: PieceKind) -> None:
        """Put a piece from the current player's reserve on an empty cell."""
        self._assert_in_progress()
        mover = self.current_player

        if not is_valid_index(index):
            raise IllegalPlacementError(f"Cell {index} is not on the board.")
        if kind not in self.reserves[mover]:
            raise IllegalPlacementError(
                f"{mover.display_name} has no {kind} left in reserve."
            )
        if not self.board.is_empty(index):
            raise IllegalPlacementError(f"Cell {index} is already occupied.")

        self.board.place_piece(index, Piece(mover, kind))
        # multiplicity matters, identity does not: remove the first match
        self.reserves[mover].remove(kind)

        self._after_action(mover)

    def move(self, from_index: int, to_index: int) -> None:
        """Move one of the current player's pieces. Captured pieces go back to their OWNER's reserve."""
        self._assert_in_progress()
        mover = self.current_player

        if self.in_opening_phase:
            raise OpeningPhaseError(OPENING_PHASE_NOTICE)
        if not self.can_move_from(from_index):
            raise IllegalMoveError(
                f"{mover.display_name} has no piece on cell {from_index}."
            )
        if not self.board.is_legal_move(from_index, to_index, mover):
            raise IllegalMoveError(f"Move not allowed: {from_index} -> {to_index}")

        captured = self.board.move_piece(Move(from_index, to_index))
        if captured is not None:
            self.reserves[captured.owner].append(captured.kind)

        self._after_action(mover)

    def start_clock(self) -> bool:
        """One-shot lazy start of the clock for the current player (White's first touch)."""
        if self.is_finished:
            return False
        return self.clock.start(self.current_player)

    def close(self) -> None:
        """Tear down: no timer may outlive the session"""
        self.clock.stop()

    # -- PRIVATE HELPERS ---
    def _assert_in_progress(self) -> None:
        if self.is_finished:
            raise GameStateError(f"Game is over. status: {self.outcome.status}")

    def _after_action(self, mover: Player) -> None:
        """Shared post-move check of place/move: win, draw, or next turn."""
        result = self.board.find_winner()
        if result is not None:
            self._finish_with_win(result)
            return

        if self.board.is_full():
            self._finish(Outcome(Status.DRAW))
            return

        self._advance_turn(mover)

    def _advance_turn(self, mover: Player) -> None:
        if self.settings.clock_on:
            self.clock.credit(mover, self.settings.clock_increment)
        self.current_player = mover.opponent
        self.turn_count[mover] += 1
        self.clock.switch_to(self.current_player)

    def _finish_with_win(self, result: WinResult) -> None:
        self._finish(Outcome(Status.WIN, winner=result.owner, line=result.line))

    def _finish(self, outcome: Outcome) -> None:
        self.clock.stop()
        self.outcome = outcome
        logger.info("Game over: %s", self.status_text())

    def _time_expired(self, loser: Player) -> None:
        if self.is_finished:
            return
        self._finish(Outcome(Status.TIMEOUT, winner=loser.opponent))
