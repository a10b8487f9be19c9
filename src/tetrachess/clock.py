"""
Per-player countdown clock.

The clock owns exactly one periodic timer handle. Every (re)start of the ticking goes through `_start_ticking`,
which always stops the previous handle first, so two timers can never decrement at the same time.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Self

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.core.shared_types import Player
from src.tetrachess.settings import GameSettings

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0

ExpiredCallback = Callable[[Player], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can call `callback` every `interval` seconds until the returned handle is cancelled."""

    def call_every(
        self, interval: float, callback: Callable[[], None]
    ) -> TimerHandle: ...


class _IntervalJob:
    """TimerHandle over an APScheduler interval job."""

    def __init__(self, job: Job) -> None:
        self._job = job
        self._removed = False

    def cancel(self) -> None:
        if self._removed:
            return
        self._removed = True
        self._job.remove()


class AsyncioScheduler:
    """Scheduler running interval jobs on the (single-threaded) asyncio event loop of the participant."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._scheduler = (
            AsyncIOScheduler(event_loop=loop) if loop is not None else AsyncIOScheduler()
        )

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if not self._scheduler.running:
            self._scheduler.start()

        # a coroutine job runs on the event loop itself, a plain function would go to a worker thread
        async def _run() -> None:
            callback()

        job = self._scheduler.add_job(
            _run, "interval", seconds=interval, coalesce=True, max_instances=1
        )
        return _IntervalJob(job)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)


def format_seconds(seconds: int) -> str:
    """MM:SS, never negative"""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass
class Clock:
    enabled: bool
    remaining: dict[Player, int]
    scheduler: Scheduler
    tick_seconds: float = TICK_SECONDS
    on_expired: Optional[ExpiredCallback] = None
    on_tick: Optional[Callable[[], None]] = None
    started_once: bool = False
    _handle: Optional[TimerHandle] = field(default=None, repr=False)
    _ticking_player: Optional[Player] = None

    @classmethod
    def from_settings(
        cls,
        settings: GameSettings,
        scheduler: Scheduler,
        tick_seconds: float = TICK_SECONDS,
    ) -> Self:
        return cls(
            enabled=settings.clock_on,
            remaining={
                Player.WHITE: settings.clock_seconds,
                Player.BLACK: settings.clock_seconds,
            },
            scheduler=scheduler,
            tick_seconds=tick_seconds,
        )

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def ticking_player(self) -> Optional[Player]:
        return self._ticking_player if self.running else None

    def start(self, player: Player) -> bool:
        """Lazy, one-shot start of the countdown. Returns True only for the call that actually started it."""
        if not self.enabled or self.started_once:
            return False
        self.started_once = True
        self._start_ticking(player)
        logger.debug("Clock started for %s", player)
        return True

    def switch_to(self, player: Player) -> None:
        """Turn changed: let the clock of the new current player run (if the clock runs at all)."""
        if not self.enabled or not self.started_once:
            return
        if self.is_expired(player):
            return
        self._start_ticking(player)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._ticking_player = None

    def credit(self, player: Player, seconds: int) -> None:
        self.remaining[player] += seconds

    def tick(self) -> None:
        """One unit of time passes for the ticking player."""
        player = self._ticking_player
        if player is None:
            return

        self.remaining[player] -= 1
        if self.remaining[player] <= 0:
            self.remaining[player] = 0
            self.stop()
            logger.info("%s ran out of time", player.display_name)
            if self.on_expired is not None:
                self.on_expired(player)

        if self.on_tick is not None:
            self.on_tick()

    def is_expired(self, player: Player) -> bool:
        return self.remaining[player] <= 0

    def display(self, player: Player) -> str:
        return format_seconds(self.remaining[player])

    def _start_ticking(self, player: Player) -> None:
        self.stop()
        self._ticking_player = player
        self._handle = self.scheduler.call_every(self.tick_seconds, self.tick)
