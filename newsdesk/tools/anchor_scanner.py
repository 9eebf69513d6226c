"""
Search-page fallback: build on-site search URLs and harvest their anchors.

Used only when feed discovery leaves a domain's quota unfilled. Search pages
carry no dates, so every harvested candidate is stamped with the fetch time;
topic and keyword filtering downstream does the real selection work.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote_plus

from bs4 import BeautifulSoup

from newsdesk.config import MAX_SEARCH_TERMS, SEARCH_PATHS
from newsdesk.schemas import RawCandidate
from newsdesk.tools.domain_utils import origin_url, resolve_url
from newsdesk.tools.feed_parser import clean_text

logger = logging.getLogger(__name__)

# Lazy-loading sites keep the real source in data-* attributes
_IMG_ATTRS = ("src", "data-src", "data-original", "data-thumbnail")


def build_search_urls(domain: str, terms: List[str]) -> List[str]:
    """
    One URL per (template, term) pair, templates outermost.

    "/search" → https://d/search?q=term
    "/?s="    → https://d/?s=term
    """
    base = origin_url(domain)
    urls = []
    for path in SEARCH_PATHS:
        for term in terms[:MAX_SEARCH_TERMS]:
            encoded = quote_plus(term)
            if path.endswith("="):
                urls.append(f"{base}{path}{encoded}")
            else:
                urls.append(f"{base}{path}?q={encoded}")
    return urls


class AnchorScanner:
    """
    Extracts every outbound-looking anchor on an HTML page as a candidate.

    Usage:
        candidates = AnchorScanner().extract(response.text, "example.com")
    """

    def extract(
        self,
        html_text: str,
        domain: str,
        fetched_at: Optional[datetime] = None,
    ) -> List[RawCandidate]:
        if not html_text:
            return []

        fetched_at = fetched_at or datetime.now(timezone.utc)
        soup = BeautifulSoup(html_text, "lxml")

        candidates = []
        for anchor in soup.find_all("a", href=True):
            title = clean_text(anchor.get_text(" ", strip=True), markup=False)
            href = anchor.get("href", "").strip()
            if not title or not href:
                continue

            url = resolve_url(href, domain)
            if not url.startswith("http"):
                continue

            candidates.append(RawCandidate(
                title=title,
                url=url,
                summary=title,
                published_raw=fetched_at.isoformat(),
                published_at=fetched_at,
                image_url=self._anchor_image(anchor, domain),
            ))

        logger.debug(f"{domain}: {len(candidates)} anchors harvested")
        return candidates

    @staticmethod
    def _anchor_image(anchor, domain: str) -> Optional[str]:
        img = anchor.find("img")
        if img is None:
            return None
        for attr in _IMG_ATTRS:
            value = (img.get(attr) or "").strip()
            if value:
                return resolve_url(value, domain)
        return None
