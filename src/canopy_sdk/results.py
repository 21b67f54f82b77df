"""Degrade-to-default helper for non-fatal remote failures."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, TypeVar

from .logger import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


async def recover(
    awaitable: Awaitable[T],
    default: T,
    *,
    message: str,
    log_level: int = logging.WARNING,
    log: logging.Logger | None = None,
    **context: Any,
) -> T:
    """Await ``awaitable`` and return its value, or ``default`` if it raises.

    The failure is logged exactly once at ``log_level`` together with any
    ``context`` keyword arguments. Only ``Exception`` subclasses are absorbed;
    cancellation still propagates.

    Args:
        awaitable: The coroutine or future to await
        default: Value returned when the awaitable fails
        message: Log message describing what was being attempted
        log_level: Logging level used for the failure
        log: Logger to use (defaults to this module's logger)
        **context: Extra values rendered into the log line

    Returns:
        The awaited value or ``default``
    """
    try:
        return await awaitable
    except Exception as exc:
        suffix = ", ".join(f"{k}={v}" for k, v in context.items())
        (log or logger).log(
            log_level,
            "%s%s: %s",
            message,
            f" ({suffix})" if suffix else "",
            exc,
        )
        return default
