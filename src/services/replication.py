"""
Keeps two participants in lock-step by applying one ordered stream of actions.

* `apply_action` is the single place where an action changes a match. Local (offline) actions and
  actions echoed back by the relay (online) go through exactly the same code.
* The transport only decides WHEN an action gets applied: immediately (offline), or once the relay
  broadcasts it back (online). The relay's order is the order everybody applies.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, assert_never

from src.core.exceptions import GameError, GameStateError, InvalidActionError
from src.core.models import GameSnapshot
from src.core.shared_types import PieceKind, Player, Status
from src.relay.transport import RelayTransport
from src.tetrachess.actions import (
    Action,
    ClockStartAction,
    MoveAction,
    PlaceAction,
    RestartAction,
    StartGameAction,
    SwapSidesAction,
    SyncSettingsAction,
    dump_action,
    parse_action,
)
from src.tetrachess.clock import TICK_SECONDS, Scheduler
from src.tetrachess.session import Session
from src.tetrachess.settings import GameSettings
from src.tetrachess.square import CELL_COUNT

logger = logging.getLogger(__name__)

OFFLINE_STATUS = "Offline mode (local game)"
CONFIGURING_TEXT = "Choose options to start"

SnapshotListener = Callable[[GameSnapshot], None]


@dataclass
class Match:
    """The Session/Clock pair of one participant, plus the settings the next game starts from."""

    scheduler: Scheduler
    settings: GameSettings = field(default_factory=GameSettings)
    tick_seconds: float = TICK_SECONDS
    session: Optional[Session] = None
    notice: Optional[str] = None

    def reset(self) -> Session:
        """Fresh game from the current settings. The old clock is stopped before the new one exists."""
        self.close()
        self.session = Session.new(self.settings, self.scheduler, self.tick_seconds)
        return self.session

    def close(self) -> None:
        if self.session is not None:
            self.session.close()

    def require_session(self) -> Session:
        if self.session is None:
            raise GameStateError("No game has been started yet.")
        return self.session

    def snapshot(self) -> GameSnapshot:
        if self.session is not None:
            return self.session.to_snapshot(self.notice)

        # still configuring: show the empty board and the reserves the game will start with
        reserve = [kind.value for kind in self.settings.initial_reserve()]
        return GameSnapshot(
            board=[None] * CELL_COUNT,
            reserves={player.value: list(reserve) for player in Player},
            current_player=Player.WHITE.value,
            status=Status.CONFIGURING.value,
            status_text=CONFIGURING_TEXT,
            notice=self.notice,
        )


def apply_action(match: Match, action: Action) -> bool:
    """
    Apply one action to the match. Returns True if the action changed the game.

    A rejected place/move leaves the match untouched (apart from the notice shown to the player).
    """
    match.notice = None
    try:
        if isinstance(action, PlaceAction):
            match.require_session().place(action.index, action.kind)
        elif isinstance(action, MoveAction):
            match.require_session().move(action.from_index, action.to_index)
        elif isinstance(action, ClockStartAction):
            return match.require_session().start_clock()
        elif isinstance(action, (RestartAction, StartGameAction)):
            match.reset()
        elif isinstance(action, SyncSettingsAction):
            match.settings = match.settings.merged(action.settings)
        elif isinstance(action, SwapSidesAction):
            # roles live in the room, not in the game
            return False
        else:
            assert_never(action)
    except GameError as exc:
        logger.info("Rejected %s: %s", action.type, exc)
        match.notice = str(exc)
        return False

    if match.session is not None:
        logger.debug("Applied %s -> %s", action.type, match.session.board.to_notation())
    return True


def replay(
    settings: GameSettings,
    actions: Iterable[Action],
    scheduler: Scheduler,
) -> Match:
    """Rebuild a match from settings and an ordered action log."""
    match = Match(scheduler=scheduler, settings=settings)
    for action in actions:
        apply_action(match, action)
    return match


@dataclass
class Room:
    code: str
    role: Optional[Player] = None
    ready: bool = False


class Replication:
    """Routes actions either straight into the local match (offline) or through the relay (online)."""

    def __init__(
        self,
        scheduler: Scheduler,
        relay: Optional[RelayTransport] = None,
        settings: Optional[GameSettings] = None,
        tick_seconds: float = TICK_SECONDS,
    ) -> None:
        self.match = Match(
            scheduler=scheduler,
            settings=settings or GameSettings(),
            tick_seconds=tick_seconds,
        )
        self.relay = relay
        self.room: Optional[Room] = None
        self.history: list[Action] = []
        self.online_status = OFFLINE_STATUS
        self._listeners: list[SnapshotListener] = []
        self._pending: deque[Action] = deque()
        self._applying = False

        self._event_handlers: dict[str, Callable[[Any], None]] = {
            "connect": self._on_connect,
            "room-created": self._on_room_created,
            "room-joined": self._on_room_joined,
            "room-ready": self._on_room_ready,
            "roles-updated": self._on_roles_updated,
            "opponent-left": self._on_opponent_left,
            "room-error": self._on_room_error,
            "action": self._on_action,
        }
        if relay is not None:
            relay.subscribe(self.handle_event)

    # --- STATE ---
    @property
    def session(self) -> Optional[Session]:
        return self.match.session

    @property
    def settings(self) -> GameSettings:
        return self.match.settings

    @property
    def online(self) -> bool:
        return self.room is not None

    @property
    def ready(self) -> bool:
        return self.room is not None and self.room.ready

    @property
    def role(self) -> Optional[Player]:
        return self.room.role if self.room else None

    def my_turn(self) -> bool:
        """Local UX guard: online you may only act for your own side."""
        if not self.online:
            return True
        session = self.match.session
        if self.role is None or session is None:
            return False
        return session.current_player == self.role

    def snapshot(self) -> GameSnapshot:
        return self.match.snapshot()

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    # --- ORIGINATING ACTIONS ---
    def submit(self, action: Action) -> None:
        """Offline: apply now. Online: hand to the relay and wait for its broadcast."""
        if not self.online:
            self._receive(action)
            return
        if self.relay is None or self.room is None:
            return
        self.relay.send_action(self.room.code, dump_action(action))

    def place(self, index: int, kind: PieceKind) -> bool:
        if not self.my_turn():
            return False
        self.submit(PlaceAction(index=index, kind=kind))
        return True

    def move(self, from_index: int, to_index: int) -> bool:
        if not self.my_turn():
            return False
        self.submit(MoveAction(from_index=from_index, to_index=to_index))
        return True

    def touch_clock(self) -> None:
        """White's first touch starts both clocks from the same point of the action stream."""
        session = self.match.session
        if session is None or session.is_finished:
            return
        if not self.settings.clock_on or session.clock.started_once:
            return
        if session.current_player != Player.WHITE:
            return
        if self.online and self.role != Player.WHITE:
            return
        self.submit(ClockStartAction())

    def start_game(self, settings: GameSettings) -> bool:
        """Only the host (White) chooses settings online; both peers reset when `start-game` comes back."""
        if not self.online:
            self.match.settings = settings
            self.submit(StartGameAction())
            return True

        if not self.ready:
            return False
        if self.role != Player.WHITE:
            self.online_status = "Waiting for host to start..."
            self._notify()
            return False

        self.submit(SyncSettingsAction.from_settings(settings))
        self.submit(StartGameAction())
        return True

    def restart(self) -> None:
        self.submit(RestartAction())

    def swap_sides(self) -> bool:
        if not self.ready:
            return False
        self.submit(SwapSidesAction())
        return True

    # --- ROOMS ---
    def create_room(self) -> None:
        if self.relay is None:
            self._set_online_status("Online play unavailable: no relay configured")
            return
        self.relay.create_room()

    def join_room(self, code: str) -> None:
        code = str(code or "").strip().upper()
        if not code:
            self._set_online_status("Enter a room code to join.")
            return
        if self.relay is None:
            self._set_online_status("Online play unavailable: no relay configured")
            return
        self.relay.join_room(code)

    def leave_room(self) -> None:
        """Back to offline play. The game in progress (if any) is kept."""
        if self.room is None:
            return
        self.room.ready = False
        logger.info("Left room %s", self.room.code)
        self.room = None
        self._set_online_status(OFFLINE_STATUS)

    def close(self) -> None:
        self.match.close()

    # --- RELAY EVENTS ---
    def handle_event(self, event: str, payload: Any = None) -> None:
        handler = self._event_handlers.get(event)
        if handler is None:
            logger.debug("Ignoring unknown relay event %r", event)
            return
        handler(payload)

    def _on_connect(self, payload: Any) -> None:
        if not self.online:
            self._set_online_status(f"{OFFLINE_STATUS}, server connected")

    def _on_room_created(self, payload: Any) -> None:
        self.room = Room(code=payload["roomCode"], role=Player(payload["role"]))
        self._set_online_status(
            f"Room created. Share code: {self.room.code}. Waiting for opponent..."
        )

    def _on_room_joined(self, payload: Any) -> None:
        self.room = Room(code=payload["roomCode"], role=Player(payload["role"]))
        self._set_online_status(
            f"Joined room {self.room.code}. Waiting for host to start..."
        )

    def _on_room_ready(self, payload: Any) -> None:
        code = payload["roomCode"]
        if self.room is None or self.room.code != code:
            self.room = Room(code=code, role=self.role)
        self.room.ready = True
        if self.room.role == Player.WHITE:
            self._set_online_status(
                "Opponent joined. You are White. Configure options, then Start."
            )
        else:
            self._set_online_status(
                "Connected. You are Black. Waiting for host to start..."
            )

    def _on_roles_updated(self, payload: Any) -> None:
        """Roles only ever change here: the relay's role map is authoritative."""
        payload = payload or {}
        if self.room is None or payload.get("roomCode") != self.room.code:
            return
        roles = payload.get("roles") or {}
        new_role = roles.get(self.relay.client_id) if self.relay else None
        if not new_role:
            return
        self.room.role = Player(new_role)
        self._set_online_status(f"Sides swapped. You are now {self.room.role}.")

    def _on_opponent_left(self, payload: Any) -> None:
        if self.room is not None:
            self.room.ready = False
        self._set_online_status("Opponent left. Waiting for opponent...")

    def _on_room_error(self, payload: Any) -> None:
        message = payload.get("message") if isinstance(payload, dict) else payload
        logger.warning("Relay reported an error: %s", message)
        self._set_online_status(f"Online error: {message}")

    def _on_action(self, payload: Any) -> None:
        try:
            action = parse_action(payload)
        except InvalidActionError as exc:
            logger.warning("%s", exc)
            return
        self._receive(action)

    # -- Internal helpers --
    def _receive(self, action: Action) -> None:
        """Actions are applied one at a time, in arrival order, never re-entrantly."""
        self._pending.append(action)
        if self._applying:
            return

        self._applying = True
        try:
            while self._pending:
                self._apply(self._pending.popleft())
        finally:
            self._applying = False

    def _apply(self, action: Action) -> None:
        self.history.append(action)
        apply_action(self.match, action)

        if isinstance(action, (StartGameAction, RestartAction)):
            self.match.require_session().clock.on_tick = self._notify

        self._notify()

    def _set_online_status(self, text: str) -> None:
        self.online_status = text
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)
