"""Unit tests for src/relay/socketio_relay.py. The Socket.IO client is mocked, no server is needed."""

import asyncio
import logging
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from src.core.exceptions import RelayError
from src.relay.socketio_relay import SOCKETIO_TRANSPORTS, SocketIORelay
from src.relay.transport import RELAY_EVENTS

RELAY_URL = "http://relay.test"


@pytest.fixture
def client() -> Mock:
    client = Mock()
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.emit = AsyncMock()
    client.get_sid.return_value = "sid-1"
    return client


@pytest.fixture
def relay(client: Mock) -> SocketIORelay:
    return SocketIORelay(RELAY_URL, client=client)


def handler_for(client: Mock, event: str) -> Any:
    for call in client.on.call_args_list:
        if call.args[0] == event:
            return call.args[1]
    raise AssertionError(f"no handler registered for {event}")


async def drain(relay: SocketIORelay) -> None:
    """Let the fire-and-forget emit tasks (and their done callbacks) run."""
    await asyncio.gather(*relay._tasks, return_exceptions=True)
    await asyncio.sleep(0)


# --- EVENTS ---
def test_handlers_are_registered_for_every_relay_event(client: Mock, relay: SocketIORelay) -> None:
    registered = [call.args[0] for call in client.on.call_args_list]
    assert registered == list(RELAY_EVENTS) + ["disconnect"]


def test_events_are_delivered_to_the_sink(client: Mock, relay: SocketIORelay) -> None:
    sink = Mock()
    relay.subscribe(sink)

    asyncio.run(handler_for(client, "room-created")({"roomCode": "ABCD", "role": "white"}))
    asyncio.run(handler_for(client, "connect")())

    assert sink.call_args_list[0].args == ("room-created", {"roomCode": "ABCD", "role": "white"})
    assert sink.call_args_list[1].args == ("connect", None)


def test_events_without_subscriber_are_dropped(client: Mock, relay: SocketIORelay) -> None:
    asyncio.run(handler_for(client, "action")({"type": "restart"}))


def test_client_id_is_the_socket_id(relay: SocketIORelay) -> None:
    assert relay.client_id == "sid-1"


# --- EMITS ---
def test_room_requests_are_emitted(client: Mock, relay: SocketIORelay) -> None:
    async def _run() -> None:
        relay.create_room()
        relay.join_room("ABCD")
        await drain(relay)

    asyncio.run(_run())
    assert client.emit.await_args_list[0].args == ("create-room", None)
    assert client.emit.await_args_list[1].args == ("join-room", "ABCD")


def test_send_action_wraps_the_room_code(client: Mock, relay: SocketIORelay) -> None:
    action = {"type": "place", "index": 3, "piece": "rook"}

    async def _run() -> None:
        relay.send_action("ABCD", action)
        await drain(relay)

    asyncio.run(_run())
    client.emit.assert_awaited_once_with("action", {"roomCode": "ABCD", "action": action})
    assert relay._tasks == set()


def test_failed_emit_is_logged(
    client: Mock, relay: SocketIORelay, caplog: pytest.LogCaptureFixture
) -> None:
    client.emit.side_effect = RuntimeError("socket closed")

    async def _run() -> None:
        relay.create_room()
        await drain(relay)

    with caplog.at_level(logging.WARNING, logger="src.relay.socketio_relay"):
        asyncio.run(_run())
    assert "socket closed" in caplog.text


# --- CONNECTION ---
def test_connect(client: Mock, relay: SocketIORelay) -> None:
    asyncio.run(relay.connect())
    client.connect.assert_awaited_once_with(RELAY_URL, transports=SOCKETIO_TRANSPORTS)


def test_connect_failure_raises_relay_error(client: Mock, relay: SocketIORelay) -> None:
    client.connect.side_effect = SocketIOConnectionError("refused")
    with pytest.raises(RelayError):
        asyncio.run(relay.connect())


def test_disconnect(client: Mock, relay: SocketIORelay) -> None:
    asyncio.run(relay.disconnect())
    client.disconnect.assert_awaited_once()
