"""
Bounded worker pool for per-domain pipelines.

min(limit, n) workers share one cursor into the task list; each claims the
next unclaimed index, awaits it, and stores the result at that index. The
cursor is only advanced between awaits, so no two workers ever claim the
same task and no lock is needed on a single event loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_concurrency(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int = 4,
) -> List[T]:
    """
    Run coroutine factories with at most `limit` in flight.

    Results come back in task order. Exceptions are not caught here: the
    per-domain pipeline catches its own failures so that one domain can
    never cancel the others.
    """
    total = len(factories)
    if total == 0:
        return []

    results: List[T] = [None] * total  # type: ignore[list-item]
    cursor = 0

    async def _worker() -> None:
        nonlocal cursor
        while cursor < total:
            index = cursor
            cursor += 1
            results[index] = await factories[index]()

    workers = max(1, min(limit, total))
    logger.debug(f"Running {total} tasks on {workers} workers")
    await asyncio.gather(*[_worker() for _ in range(workers)])
    return results
