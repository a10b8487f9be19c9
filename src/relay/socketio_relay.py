"""Implementation of RelayTransport using python-socketio's asyncio client"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from src.core.exceptions import RelayError
from src.relay.transport import RELAY_EVENTS, EventSink

logger = logging.getLogger(__name__)

SOCKETIO_TRANSPORTS = ["websocket", "polling"]


class SocketIORelay:
    """Talks to the room relay over Socket.IO. All callbacks run on the participant's event loop."""

    def __init__(self, url: str, client: Optional[socketio.AsyncClient] = None) -> None:
        self.url = url
        self._sio = client if client is not None else socketio.AsyncClient()
        self._sink: Optional[EventSink] = None
        self._tasks: set[asyncio.Task[None]] = set()

        for event in RELAY_EVENTS:
            self._sio.on(event, self._make_handler(event))
        self._sio.on("disconnect", self._on_disconnect)

    @property
    def client_id(self) -> Optional[str]:
        return self._sio.get_sid()

    # -- connection lifecycle --
    async def connect(self) -> None:
        try:
            await self._sio.connect(self.url, transports=SOCKETIO_TRANSPORTS)
        except SocketIOConnectionError as exc:
            raise RelayError(f"Cannot reach relay at {self.url}") from exc
        logger.info("Connected to relay %s", self.url)

    async def disconnect(self) -> None:
        await self._sio.disconnect()

    # -- RelayTransport --
    def subscribe(self, sink: EventSink) -> None:
        self._sink = sink

    def create_room(self) -> None:
        self._emit("create-room")

    def join_room(self, code: str) -> None:
        self._emit("join-room", code)

    def send_action(self, room_code: str, action: dict[str, Any]) -> None:
        self._emit("action", {"roomCode": room_code, "action": action})

    # -- Internal helpers --
    def _make_handler(self, event: str) -> Callable[..., Coroutine[Any, Any, None]]:
        async def handler(*args: Any) -> None:
            payload = args[0] if args else None
            self._deliver(event, payload)

        return handler

    def _deliver(self, event: str, payload: Any) -> None:
        if self._sink is None:
            logger.debug("Dropping relay event %r: nobody subscribed", event)
            return
        self._sink(event, payload)

    async def _on_disconnect(self, *args: Any) -> None:
        logger.warning("Disconnected from relay %s", self.url)

    def _emit(self, event: str, data: Any = None) -> None:
        """Fire-and-forget: the relay answers with events, not with a return value."""
        task = asyncio.get_running_loop().create_task(self._sio.emit(event, data))
        self._tasks.add(task)
        task.add_done_callback(self._emit_done)

    def _emit_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Sending to relay failed: %s", exc)
