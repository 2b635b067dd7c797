from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    initial_delay: float = 0.05,
    max_delay: float = 1.0,
    factor: float = 2.0,
    retry_exceptions: tuple[type[BaseException], ...] = (Exception,),
    operation: str = "operation",
) -> T:
    """Await ``func`` until it succeeds, backing off between attempts; re-raises the last error."""
    delay = initial_delay
    for attempt in range(1, max(1, attempts) + 1):
        try:
            return await func()
        except retry_exceptions as exc:  # type: ignore[misc]
            if attempt >= attempts:
                raise
            logger.warning(f"{operation} failed (attempt {attempt}/{attempts}): {exc}; retrying in {delay:.2f}s")
            await asyncio.sleep(delay)
            delay = min(delay * factor, max_delay)
    raise RuntimeError(f"{operation}: no attempts were made")
