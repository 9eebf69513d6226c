"""
HTTP GET with throttling, bounded retry, and checked redirects.

One shared httpx.AsyncClient is used for every origin (connection pooling);
it is created lazily so a scrape with nothing to do never opens one.

RETRY POLICY:
  Any transport error or non-2xx status is a failure. Attempt N+1 runs after
  base_delay * N. Once max_retries is exhausted the last error is raised as
  FetchError and the caller decides what "skip" means.

REDIRECTS:
  The client never follows redirects on its own. Each hop is resolved here,
  throttled under its own host, and offered to the caller's `is_allowed`
  check (robots.txt) before it is requested. A refused hop or a chain longer
  than max_redirects raises FetchError immediately, without retrying.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx

from newsdesk.config import get_settings
from newsdesk.tools.domain_utils import path_of, sanitize_domain
from newsdesk.tools.throttle import DomainThrottler

logger = logging.getLogger(__name__)

_ACCEPT = "application/json, text/html, application/xml, text/xml"

# (domain, path) -> may this be requested?
PathCheck = Callable[[str, str], Awaitable[bool]]


class FetchError(Exception):
    """Raised once every attempt at a URL has failed."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None, attempts: int = 1):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code
        self.attempts = attempts


class ResilientFetcher:
    """
    Throttled GET with linear-backoff retry.

    Usage:
        fetcher = ResilientFetcher(DomainThrottler(1000))
        response = await fetcher.fetch("example.com", "https://example.com/rss",
                                       is_allowed=robots.is_path_allowed)
        await fetcher.aclose()
    """

    def __init__(
        self,
        throttler: DomainThrottler,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        max_redirects: Optional[int] = None,
    ):
        settings = get_settings()
        self.throttler = throttler
        self.max_retries = settings.effective_max_retries if max_retries is None else max_retries
        delay_ms = settings.fetch_retry_delay_ms if retry_delay_ms is None else retry_delay_ms
        self.retry_delay = delay_ms / 1000.0
        self.timeout = settings.fetch_timeout_seconds if timeout_seconds is None else timeout_seconds
        self.max_redirects = settings.fetch_max_redirects if max_redirects is None else max_redirects
        self.headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": _ACCEPT,
        }
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=False, timeout=self.timeout)
        return self._client

    async def fetch(
        self,
        domain: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        max_retries: Optional[int] = None,
        is_allowed: Optional[PathCheck] = None,
    ) -> httpx.Response:
        """GET `url`, throttled under `domain`. Raises FetchError after the last attempt."""
        retries = self.max_retries if max_retries is None else max_retries
        request_headers = {**self.headers, **(headers or {})}
        client = self._get_client()

        attempt = 0
        last_error: Optional[FetchError] = None
        while attempt <= retries:
            try:
                response = await self._get(client, domain, url, request_headers, is_allowed)
                if response.is_success:
                    return response
                last_error = FetchError(
                    url, f"Request failed with status {response.status_code}",
                    status_code=response.status_code, attempts=attempt + 1,
                )
            except httpx.HTTPError as e:
                last_error = FetchError(url, f"{type(e).__name__}: {e}", attempts=attempt + 1)

            attempt += 1
            if attempt > retries:
                break
            logger.debug(f"Retry {attempt}/{retries} for {url}: {last_error}")
            await asyncio.sleep(self.retry_delay * attempt)

        raise last_error or FetchError(url, "Network request failed", attempts=attempt)

    async def _get(
        self,
        client: httpx.AsyncClient,
        domain: str,
        url: str,
        headers: Dict[str, str],
        is_allowed: Optional[PathCheck],
    ) -> httpx.Response:
        """One attempt: request `url` and walk its redirect chain hop by hop."""
        hop_domain, hop_url = domain, url
        for _ in range(self.max_redirects + 1):
            await self.throttler.before_request(hop_domain)
            response = await client.get(
                hop_url, headers=headers, timeout=self.timeout, follow_redirects=False,
            )
            if not response.is_redirect:
                return response

            try:
                target = response.url.join(response.headers["location"])
            except httpx.InvalidURL as e:
                raise FetchError(url, f"Bad redirect location: {e}", status_code=response.status_code)
            hop_url = str(target)
            hop_domain = sanitize_domain(target.host) or hop_domain
            if is_allowed is not None and not await is_allowed(hop_domain, path_of(hop_url)):
                raise FetchError(
                    url, f"Redirect to {hop_url} is disallowed by robots.txt",
                    status_code=response.status_code,
                )
            logger.debug(f"{url}: following {response.status_code} to {hop_url}")

        raise FetchError(
            url, f"Stopped after {self.max_redirects} redirects", status_code=response.status_code,
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
