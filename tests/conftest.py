"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/test doubles required for testing multiple layers:
* a scheduler whose ticks are fired by hand (no real time passes in tests)
* an in-process relay that keeps rooms and rebroadcasts actions in arrival order
"""

from collections import deque
from typing import Any, Callable, Iterator, Optional

import pytest

from src.core.shared_types import Player
from src.relay.transport import EventSink
from src.tetrachess.session import Session
from src.tetrachess.settings import GameSettings


# --- MANUAL SCHEDULER ---
class ManualTimer:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Implements the Scheduler protocol. `tick()` fires every live timer once."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def call_every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            for timer in self.active:
                # an earlier callback in this round may have cancelled it
                if not timer.cancelled:
                    timer.callback()


# --- LOOPBACK RELAY ---
class LoopbackClient:
    """Implements the RelayTransport protocol against a LoopbackRelay."""

    def __init__(self, relay: "LoopbackRelay", client_id: str) -> None:
        self.relay = relay
        self._client_id = client_id
        self.sink: Optional[EventSink] = None
        self.sent: list[tuple[str, Any]] = []

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    def subscribe(self, sink: EventSink) -> None:
        self.sink = sink

    def create_room(self) -> None:
        self.sent.append(("create-room", None))
        self.relay.create_room(self)

    def join_room(self, code: str) -> None:
        self.sent.append(("join-room", code))
        self.relay.join_room(self, code)

    def send_action(self, room_code: str, action: dict[str, Any]) -> None:
        self.sent.append(("action", action))
        self.relay.receive_action(self, room_code, action)


class LoopbackRelay:
    """
    Room-scoped, order-preserving broadcast. Events are queued and only delivered on `flush()`,
    so tests control when the 'network' catches up.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, dict[str, Player]] = {}
        self.clients: dict[str, LoopbackClient] = {}
        self.outbox: deque[tuple[LoopbackClient, str, Any]] = deque()
        self._room_counter = 0

    def connect(self, client_id: str) -> LoopbackClient:
        client = LoopbackClient(self, client_id)
        self.clients[client_id] = client
        return client

    def create_room(self, client: LoopbackClient) -> None:
        self._room_counter += 1
        code = f"ROOM{self._room_counter}"
        self.rooms[code] = {client.client_id: Player.WHITE}
        self._send(client, "room-created", {"roomCode": code, "role": "white"})

    def join_room(self, client: LoopbackClient, code: str) -> None:
        members = self.rooms.get(code)
        if members is None:
            self._send(client, "room-error", "Room not found")
            return
        if len(members) >= 2:
            self._send(client, "room-error", "Room is full")
            return
        members[client.client_id] = Player.BLACK
        self._send(client, "room-joined", {"roomCode": code, "role": "black"})
        self._broadcast(code, "room-ready", {"roomCode": code})

    def receive_action(
        self, client: LoopbackClient, code: str, action: dict[str, Any]
    ) -> None:
        self._broadcast(code, "action", action)
        if action.get("type") == "swap-sides":
            members = self.rooms[code]
            for client_id, role in members.items():
                members[client_id] = role.opponent
            self._broadcast(
                code,
                "roles-updated",
                {"roomCode": code, "roles": {cid: r.value for cid, r in members.items()}},
            )

    def leave(self, client: LoopbackClient, code: str) -> None:
        members = self.rooms.get(code, {})
        members.pop(client.client_id, None)
        for client_id in members:
            self._send(self.clients[client_id], "opponent-left", None)

    def flush(self) -> None:
        while self.outbox:
            client, event, payload = self.outbox.popleft()
            if client.sink is not None:
                client.sink(event, payload)

    def _broadcast(self, code: str, event: str, payload: Any) -> None:
        for client_id in self.rooms[code]:
            self._send(self.clients[client_id], event, payload)

    def _send(self, client: LoopbackClient, event: str, payload: Any) -> None:
        self.outbox.append((client, event, payload))


# --- FIXTURES ---
@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def loopback_relay() -> LoopbackRelay:
    return LoopbackRelay()


@pytest.fixture
def new_session(
    scheduler: ManualScheduler,
) -> Iterator[Callable[..., Session]]:
    """Call the inner function with settings overrides (wire names or field names) to get a fresh session."""
    sessions: list[Session] = []

    def _create_session(**overrides: Any) -> Session:
        session = Session.new(GameSettings.model_validate(overrides), scheduler)
        sessions.append(session)
        return session

    try:
        yield _create_session
    finally:
        for session in sessions:
            session.close()
