"""Wiring of one participant process: config -> logging -> scheduler/relay -> replication -> service."""

import asyncio
import logging
from typing import Optional

from src.core.config import AppConfig, configure_logging, load_config
from src.relay.socketio_relay import SocketIORelay
from src.services.game_service import GameService
from src.services.replication import Replication
from src.tetrachess.clock import AsyncioScheduler

logger = logging.getLogger(__name__)


def create_service(
    config: AppConfig,
    relay: Optional[SocketIORelay] = None,
    scheduler: Optional[AsyncioScheduler] = None,
) -> GameService:
    """Must be called from inside the running event loop (clock ticks are scheduled on it)."""
    replication = Replication(
        scheduler=scheduler or AsyncioScheduler(asyncio.get_running_loop()),
        relay=relay,
        tick_seconds=config.tick_seconds,
    )
    return GameService(replication)


async def create_online_service(
    config: AppConfig, scheduler: Optional[AsyncioScheduler] = None
) -> GameService:
    relay = SocketIORelay(config.relay_url)
    # the replication subscribes to the relay here, so it also sees the `connect` event
    service = create_service(config, relay, scheduler)
    await relay.connect()
    return service


async def _host_room(config: AppConfig) -> None:
    """Headless host: open a room and log every state change until cancelled."""
    scheduler = AsyncioScheduler(asyncio.get_running_loop())
    service = await create_online_service(config, scheduler)
    service.replication.add_listener(
        lambda snapshot: logger.info(
            "%s | %s", service.replication.online_status, snapshot.status_text
        )
    )
    service.create_room()
    try:
        await asyncio.Event().wait()
    finally:
        service.replication.close()
        scheduler.shutdown()


def main() -> None:
    config = load_config()
    configure_logging(config.log_level)
    asyncio.run(_host_room(config))


if __name__ == "__main__":
    main()
