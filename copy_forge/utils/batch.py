"""Sequential batch combinator.

Every multi-item operation (asset interpretation, multi-URL scraping, variation
generation) goes through ``process_sequentially`` so items are handled one at a
time against third-party providers. One item failing never aborts its siblings.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")


async def process_sequentially(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    on_error: Callable[[T, Exception], R],
    delay_seconds: float = 0.0,
    label: str = "batch",
) -> list[R]:
    """Run ``worker`` over ``items`` one at a time, in order.

    Exceptions raised by ``worker`` are turned into results via ``on_error``.
    ``delay_seconds`` is slept between consecutive items (not after the last).
    """
    results: list[R] = []
    pending = list(items)
    for index, item in enumerate(pending):
        if index and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        try:
            results.append(await worker(item))
        except Exception as e:
            logger.warning(f"{label}.item_failed", index=index, error=str(e))
            results.append(on_error(item, e))
    return results
