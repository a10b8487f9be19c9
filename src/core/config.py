"""Runtime configuration, read from the environment (and a local .env file if present)."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_RELAY_URL = "http://localhost:3000"
DEFAULT_TICK_SECONDS = 1.0
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    relay_url: str
    tick_seconds: float
    log_level: str


def load_config() -> AppConfig:
    return AppConfig(
        relay_url=os.getenv("TETRACHESS_RELAY_URL", DEFAULT_RELAY_URL),
        tick_seconds=float(
            os.getenv("TETRACHESS_TICK_SECONDS", str(DEFAULT_TICK_SECONDS))
        ),
        log_level=os.getenv("TETRACHESS_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
