"""Protocol relay transport (Socket.IO client now; any room-scoped, order-preserving broadcast would do)"""

from typing import Any, Callable, Optional, Protocol

# Relay -> client events. Every one of them is handed to a single event sink, one at a time.
RELAY_EVENTS: tuple[str, ...] = (
    "connect",
    "room-created",
    "room-joined",
    "room-ready",
    "roles-updated",
    "opponent-left",
    "room-error",
    "action",
)

EventSink = Callable[[str, Any], None]


class RelayTransport(Protocol):
    """Client side of the relay"""

    @property
    def client_id(self) -> Optional[str]:
        """Identifier the relay uses for this client in role maps."""
        ...

    def subscribe(self, sink: EventSink) -> None:
        """Deliver every relay event (name, payload) to `sink`."""
        ...

    def create_room(self) -> None:
        """Ask the relay for a new room. Answered by `room-created`."""
        ...

    def join_room(self, code: str) -> None:
        """Join an existing room. Answered by `room-joined` (or `room-error`)."""
        ...

    def send_action(self, room_code: str, action: dict[str, Any]) -> None:
        """Submit an action. The relay broadcasts it to every member, sender included."""
        ...
