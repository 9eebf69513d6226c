"""
Per-domain request throttling.

Every outgoing request (robots, feed, search page) waits here first so that
consecutive requests to one origin are at least `min_interval_ms` apart.
Different domains never wait on each other: each has its own lock and its
own last-request timestamp.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class DomainThrottler:
    """
    Enforces a minimum gap between requests to the same domain.

    Usage:
        throttler = DomainThrottler(min_interval_ms=1000)
        await throttler.before_request("example.com")
        ... issue request ...
    """

    def __init__(
        self,
        min_interval_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = max(0, min_interval_ms) / 1000.0
        self._clock = clock
        self._last_request: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, domain: str) -> asyncio.Lock:
        lock = self._locks.get(domain)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[domain] = lock
        return lock

    async def before_request(self, domain: str) -> float:
        """Suspend until `domain` may be contacted again. Returns seconds waited."""
        async with self._lock_for(domain):
            waited = 0.0
            last = self._last_request.get(domain)
            if last is not None:
                elapsed = self._clock() - last
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    await asyncio.sleep(waited)
            self._last_request[domain] = self._clock()
            return waited

    def last_request_at(self, domain: str) -> Optional[float]:
        return self._last_request.get(domain)

    def reset(self) -> None:
        self._last_request.clear()
        self._locks.clear()
