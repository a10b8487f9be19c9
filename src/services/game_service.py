"""Translation of presentation intents (taps, menu buttons) into actions, and of match state into responses."""

from dataclasses import asdict
from typing import Optional

from src.api.models import (
    CellResponse,
    CellTapRequest,
    GameResponse,
    JoinRoomRequest,
    ReserveTapRequest,
    StartRequest,
)
from src.core.models import GameSnapshot
from src.core.shared_types import PieceKind, Player
from src.services.replication import Replication
from src.tetrachess.session import OPENING_PHASE_NOTICE, Session
from src.tetrachess.settings import GameSettings


class GameService:
    """Orchestration of one participant's intents. Owns the (presentation-adjacent) selection state."""

    def __init__(self, replication: Replication) -> None:
        self.replication = replication
        self.selected_cell: Optional[int] = None
        self.selected_reserve_piece: Optional[PieceKind] = None
        self.notice: Optional[str] = None
        self._seen_session: Optional[Session] = None
        self._seen_turn: Optional[str] = None
        replication.add_listener(self._on_state_change)

    # -- presentation intents --
    def cell_tapped(self, request: CellTapRequest) -> GameResponse:
        """Select a piece, place the selected reserve piece, or move the selected piece."""
        self.notice = None
        session = self.replication.session
        if session is None or session.is_finished or not self.replication.my_turn():
            return self.state()

        index = request.index
        clicked = session.board.piece(index)
        own_piece = session.can_move_from(index)

        # placing from reserve
        if self.selected_reserve_piece is not None:
            if clicked is None:
                self.replication.touch_clock()
                self.replication.place(index, self.selected_reserve_piece)
            elif own_piece:
                # clicking your own piece swaps the reserve selection for a board selection
                self.selected_reserve_piece = None
                self.replication.touch_clock()
                self.selected_cell = index
            return self.state()

        # selecting/moving from board
        if self.selected_cell is None:
            if own_piece:
                self.replication.touch_clock()
                self.selected_cell = index
            return self.state()

        if self.selected_cell == index:
            self.selected_cell = None
            return self.state()

        if own_piece:
            self.selected_cell = index
            return self.state()

        if session.in_opening_phase:
            self.selected_cell = None
            self.notice = OPENING_PHASE_NOTICE
            return self.state()

        if session.board.is_legal_move(
            self.selected_cell, index, session.current_player
        ):
            self.replication.move(self.selected_cell, index)
            return self.state()

        self.selected_cell = None
        return self.state()

    def reserve_tapped(self, request: ReserveTapRequest) -> GameResponse:
        """Toggle the selection of a reserve piece so the player can change their mind."""
        self.notice = None
        session = self.replication.session
        if session is None or session.is_finished:
            return self.state()
        if request.player != session.current_player or not self.replication.my_turn():
            return self.state()
        if request.kind not in session.reserves[request.player]:
            return self.state()

        self.replication.touch_clock()
        self.selected_reserve_piece = (
            None if self.selected_reserve_piece == request.kind else request.kind
        )
        self.selected_cell = None
        return self.state()

    def start(self, request: StartRequest) -> GameResponse:
        settings = GameSettings.model_validate(request.settings)
        self.replication.start_game(settings)
        return self.state()

    def restart(self) -> GameResponse:
        self.replication.restart()
        return self.state()

    def swap_sides(self) -> GameResponse:
        self.replication.swap_sides()
        return self.state()

    def create_room(self) -> GameResponse:
        self.replication.create_room()
        return self.state()

    def join_room(self, request: JoinRoomRequest) -> GameResponse:
        self.replication.join_room(request.code)
        return self.state()

    def state(self) -> GameResponse:
        return self._create_game_response(self.replication.snapshot())

    # -- Internal helpers --
    def _on_state_change(self, snapshot: GameSnapshot) -> None:
        """No selection survives a turn boundary or a new game."""
        session = self.replication.session
        turn = f"{snapshot.current_player}:{snapshot.status}"
        if session is not self._seen_session or turn != self._seen_turn:
            self.selected_cell = None
            self.selected_reserve_piece = None
        self._seen_session = session
        self._seen_turn = turn

    def _highlighted_cells(self) -> list[int]:
        session = self.replication.session
        if session is None or session.is_finished or self.selected_cell is None:
            return []
        return session.board.legal_destinations(
            self.selected_cell, session.current_player
        )

    def _create_game_response(self, snapshot: GameSnapshot) -> GameResponse:
        room = self.replication.room
        return GameResponse(
            board=[
                CellResponse(**asdict(cell)) if cell else None
                for cell in snapshot.board
            ],
            reserves=snapshot.reserves,
            current_player=snapshot.current_player,
            status=snapshot.status,
            winner=snapshot.winner,
            winning_line=snapshot.winning_line,
            clock_display=snapshot.clock_display,
            active_clock=snapshot.active_clock,
            in_opening_phase=snapshot.in_opening_phase,
            selected_cell=self.selected_cell,
            selected_reserve_piece=(
                self.selected_reserve_piece.value
                if self.selected_reserve_piece
                else None
            ),
            highlighted_cells=self._highlighted_cells(),
            status_text=self._status_text(snapshot),
            notice=self.notice or snapshot.notice,
            online_status=self.replication.online_status,
            room_code=room.code if room else None,
            role=room.role.value if room and room.role else None,
            my_turn=self.replication.my_turn(),
            flip_black=self.replication.settings.flip_black,
        )

    def _status_text(self, snapshot: GameSnapshot) -> str:
        """Online, tell the waiting player whose turn it is instead of 'White's turn'."""
        session = self.replication.session
        if (
            session is not None
            and not session.is_finished
            and not session.in_opening_phase
            and self.replication.online
            and not self.replication.my_turn()
        ):
            return f"Opponent's turn ({Player(snapshot.current_player).display_name})"
        return snapshot.status_text
