from __future__ import annotations

import logging
import os
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%H:%M:%S"

# per-connection chatter from these drowns out scan progress
THIRD_PARTY_LOGGERS = ("aiohttp", "asyncio", "bleak", "zeroconf")


def resolve_level(level: str | None = None) -> str:
    """Explicit level, else ``LOGLEVEL``, else INFO."""
    resolved = (level or os.environ.get("LOGLEVEL") or "INFO").upper()
    if resolved not in logging.getLevelNamesMapping():
        return "INFO"
    return resolved


def setup_logging(level: LogLevel | None = None) -> None:
    resolved = resolve_level(level)
    coloredlogs.install(level=resolved, fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    # library loggers stay quiet unless we are debugging ourselves
    quiet = logging.DEBUG if resolved == "DEBUG" else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
