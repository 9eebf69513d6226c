"""
Scrape orchestration: allowed domains + topic filters → ranked article list.

PER-DOMAIN PIPELINE:
  1. FEED DISCOVERY:  probe FEED_PATHS (/rss, /feed, ...) on the domain
  2. SEARCH FALLBACK: only if the domain's quota is still unfilled and there
                      are search terms, query on-site search pages and
                      harvest their anchors
  Every URL, and every redirect hop, is checked against robots.txt before it
  is requested, and every request goes through the shared per-domain
  throttle. Each candidate is classified, filtered (topics, keywords, time
  window), normalized, and accumulated up to min(MAX_ITEMS_PER_DOMAIN,
  result_limit).

FINAL ASSEMBLY:
  flatten → re-check time window → newest first → dedup → truncate

FAILURE MODEL:
  A failed URL is skipped; a failed domain contributes nothing; a scrape
  never raises because of what origins do. An empty domain list returns []
  without touching the network.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set

from newsdesk.config import FEED_PATHS, get_settings
from newsdesk.news.dedup import Deduplicator
from newsdesk.news.scheduler import run_with_concurrency
from newsdesk.news.topics import TopicClassifier, build_query_for_filters, clean_filter_terms
from newsdesk.schemas import GeoContext, NormalizedItem, RawCandidate, ScrapeRequest
from newsdesk.tools.anchor_scanner import AnchorScanner, build_search_urls
from newsdesk.tools.domain_utils import origin_url, path_of, sanitize_domain
from newsdesk.tools.feed_parser import FeedExtractor
from newsdesk.tools.fetcher import FetchError, ResilientFetcher
from newsdesk.tools.robots import RobotsGate
from newsdesk.tools.throttle import DomainThrottler

logger = logging.getLogger(__name__)


def clamp_limit(value: int, maximum: Optional[int] = None) -> int:
    """Clamp a requested result count into [1, MAX_RESULT_LIMIT]."""
    maximum = get_settings().max_result_limit if maximum is None else maximum
    try:
        value = int(value)
    except (TypeError, ValueError):
        value = 1
    return min(maximum, max(1, value))


def should_keep(item, filters: Iterable[str], keywords: Iterable[str]) -> bool:
    """
    Topic / keyword gate.

    - No filters and no keywords → keep everything
    - Filters given  → at least one of the item's categories must be in them
    - Keywords given → one keyword must appear (case-insensitive substring)
                       in title + summary
    Both conditions must hold when both are given.
    """
    filters = list(filters or [])
    keywords = [k for k in (keywords or []) if k]
    if not filters and not keywords:
        return True
    if filters and not set(item.categories) & set(filters):
        return False
    if keywords:
        haystack = f"{item.title} {item.summary}".lower()
        if not any(keyword.lower() in haystack for keyword in keywords):
            return False
    return True


def search_terms_for(request: ScrapeRequest) -> List[str]:
    """Cleaned filter-query terms followed by lower-cased free-text keywords."""
    terms = clean_filter_terms(request.filter_query_clauses)
    for keyword in request.free_text_keywords:
        keyword = keyword.strip().lower()
        if keyword and keyword not in terms:
            terms.append(keyword)
    return terms


class ScrapeOrchestrator:
    """
    Facade over the whole discovery engine.

    Usage:
        orchestrator = ScrapeOrchestrator()
        items = await orchestrator.scrape(ScrapeRequest(domains=["example.com"], since=...))
        await orchestrator.aclose()

    Components can be injected (tests pass a fetcher built on
    httpx.MockTransport); anything omitted is built from settings.
    """

    def __init__(
        self,
        fetcher: Optional[ResilientFetcher] = None,
        robots: Optional[RobotsGate] = None,
        classifier: Optional[TopicClassifier] = None,
        deduplicator: Optional[Deduplicator] = None,
        feed_extractor: Optional[FeedExtractor] = None,
        anchor_scanner: Optional[AnchorScanner] = None,
        max_concurrency: Optional[int] = None,
        max_items_per_domain: Optional[int] = None,
    ):
        settings = get_settings()
        self.settings = settings
        self.fetcher = fetcher or ResilientFetcher(DomainThrottler(settings.effective_rate_limit_ms))
        self.robots = robots or RobotsGate(self.fetcher)
        self.classifier = classifier or TopicClassifier()
        self.deduplicator = deduplicator or Deduplicator()
        self.feed_extractor = feed_extractor or FeedExtractor()
        self.anchor_scanner = anchor_scanner or AnchorScanner()
        self.max_concurrency = max_concurrency or settings.scrape_max_concurrency
        self.max_items_per_domain = max_items_per_domain or settings.max_items_per_domain

    async def scrape(self, request: ScrapeRequest) -> List[NormalizedItem]:
        limit = clamp_limit(request.result_limit, self.settings.max_result_limit)

        domains: List[str] = []
        for raw in request.domains:
            domain = sanitize_domain(raw)
            if domain and domain not in domains:
                domains.append(domain)
        if not domains:
            logger.info("No allowed domains configured, nothing to scrape")
            return []

        search_terms = search_terms_for(request)
        factories = [
            (lambda d=domain: self._scrape_domain_safe(d, request, limit, search_terms))
            for domain in domains
        ]
        per_domain = await run_with_concurrency(factories, self.max_concurrency)

        merged = [item for items in per_domain for item in items if item.published_at >= request.since]
        merged.sort(key=lambda item: item.published_at, reverse=True)
        result = self.deduplicator.dedupe(merged)[:limit]

        logger.info(
            f"[SCRAPE] {len(result)} items from {len(domains)} domains "
            f"({len(merged)} before dedup, limit {limit})"
        )
        return result

    async def _scrape_domain_safe(
        self, domain: str, request: ScrapeRequest, limit: int, search_terms: List[str],
    ) -> List[NormalizedItem]:
        try:
            return await self.scrape_domain(domain, request, limit, search_terms)
        except Exception as e:
            logger.warning(f"[FAIL] {domain}: {type(e).__name__}: {e}")
            return []

    async def scrape_domain(
        self,
        domain: str,
        request: ScrapeRequest,
        limit: int,
        search_terms: Optional[List[str]] = None,
    ) -> List[NormalizedItem]:
        """Feed discovery, then search fallback, for a single sanitized domain."""
        cap = min(self.max_items_per_domain, limit)
        search_terms = search_terms_for(request) if search_terms is None else search_terms
        results: List[NormalizedItem] = []

        base = origin_url(domain)
        for path in FEED_PATHS:
            if await self._collect(domain, f"{base}{path}", request, results, cap, is_feed=True):
                logger.debug(f"{domain}: quota of {cap} filled from feeds")
                return results

        if len(results) >= cap or not search_terms:
            return results

        for url in build_search_urls(domain, search_terms):
            if await self._collect(domain, url, request, results, cap, is_feed=False):
                break

        logger.debug(f"{domain}: {len(results)} items")
        return results

    async def _collect(
        self,
        domain: str,
        url: str,
        request: ScrapeRequest,
        results: List[NormalizedItem],
        cap: int,
        is_feed: bool,
    ) -> bool:
        """Fetch one URL and append its kept items. Returns True once `cap` is reached."""
        if not await self.robots.is_path_allowed(domain, path_of(url)):
            return False

        try:
            response = await self.fetcher.fetch(domain, url, is_allowed=self.robots.is_path_allowed)
        except FetchError as e:
            logger.debug(f"{domain}: skipping {url}: {e}")
            return False

        if is_feed:
            candidates = self.feed_extractor.extract(response.content)
        else:
            candidates = self.anchor_scanner.extract(response.text, domain)

        filters = request.topic_filters
        keywords = request.free_text_keywords
        for candidate in candidates:
            item = self.normalize(candidate, domain, request.location_context)
            if item is None:
                continue
            if not should_keep(item, filters, keywords):
                continue
            if item.published_at < request.since:
                continue
            results.append(item)
            if len(results) >= cap:
                return True
        return False

    def normalize(
        self,
        candidate: RawCandidate,
        domain: str,
        location: Optional[GeoContext] = None,
    ) -> Optional[NormalizedItem]:
        """Classify a candidate and build the outgoing item; None if it has no usable date."""
        if candidate.published_at is None:
            return None
        categories: Set[str] = self.classifier.classify(
            f"{candidate.title} {candidate.summary}", candidate.url
        )
        return NormalizedItem(
            url=candidate.url,
            title=candidate.title,
            summary=candidate.summary,
            image_url=candidate.image_url,
            published_at=candidate.published_at,
            source_domain=domain,
            categories=sorted(categories),
            location_hints=location.hints() if location else None,
        )

    async def aclose(self) -> None:
        await self.fetcher.aclose()


async def scrape_news(
    domains: List[str],
    since: Optional[datetime] = None,
    topic_filters: Optional[List[str]] = None,
    keywords: Optional[List[str]] = None,
    location: Optional[GeoContext] = None,
    limit: int = 50,
) -> List[NormalizedItem]:
    """One-shot scrape with a throwaway orchestrator (CLI / scripts)."""
    settings = get_settings()
    topic_filters = topic_filters or []
    request = ScrapeRequest(
        topic_filters=topic_filters,
        filter_query_clauses=build_query_for_filters(topic_filters),
        location_context=location,
        free_text_keywords=keywords or [],
        domains=domains,
        since=since or datetime.now(timezone.utc) - timedelta(hours=settings.default_since_hours),
        result_limit=limit,
    )
    orchestrator = ScrapeOrchestrator()
    try:
        return await orchestrator.scrape(request)
    finally:
        await orchestrator.aclose()
