"""Bounded collaborator calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def bounded_call(
    awaitable: Awaitable[T],
    *,
    timeout: float,
    operation: str,
    subject: str,
) -> T | None:
    """Await *awaitable* for at most *timeout* seconds.

    Timeouts and collaborator errors are logged and returned as ``None`` so
    one slow or failing lookup never stalls the rest of the fleet.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except TimeoutError:
        _logger.warning("%s timed out for %s after %.1fs", operation, subject, timeout)
    except Exception:
        _logger.warning("%s failed for %s", operation, subject, exc_info=True)
    return None
