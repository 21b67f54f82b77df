"""Logging for canopy-sdk.

The library only ever calls ``get_logger``; ``setup_logging`` is for the CLI
and for applications that want the SDK's console format.
"""

import logging
import os
import sys
from typing import TextIO

# Below DEBUG: raw view-call arguments and HTTP transport chatter
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Transport libraries that are only interesting at TRACE
_TRANSPORT_LOGGERS = ("urllib3", "backoff")

_LEVEL_COLORS = {
    "TRACE": "\033[90m",
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class LevelColorFormatter(logging.Formatter):
    """Colors the level name; leaves the rest of the record untouched."""

    def __init__(self, fmt: str, datefmt: str, use_color: bool):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelname) if self.use_color else None
        if color is None:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _wants_color(stream: TextIO) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def resolve_level(log_level: str | None) -> int:
    name = (log_level or os.getenv("CANOPY_LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_logging(log_level: str | None = None) -> None:
    """Configure root logging on stderr.

    ``log_level`` wins over ``CANOPY_LOG_LEVEL`` (default INFO). Stdout is
    left to the CLI's JSON output. Transport loggers stay at WARNING unless
    the level is TRACE.
    """
    level = resolve_level(log_level)
    stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        LevelColorFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
            use_color=_wants_color(stream),
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    transport_level = TRACE if level <= TRACE else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module (usually ``__name__``)."""
    return logging.getLogger(name)
