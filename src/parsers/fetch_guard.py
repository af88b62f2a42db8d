"""Per-call timeout + failure capture for collaborator fetches.

Every external fetch is an I/O boundary. A failure or timeout is turned
into None here; the caller decides the conservative default.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


async def guarded_fetch(
    awaitable: Awaitable[T],
    *,
    label: str,
    address: str,
    timeout: float,
) -> T | None:
    """Await a collaborator call, returning None on error or timeout."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[FETCH] {label} timed out after {timeout:.1f}s for {address[:12]}")
        return None
    except Exception as e:
        logger.warning(f"[FETCH] {label} failed for {address[:12]}: {e}")
        return None
