"""
Keyword-based topic classification over the static TOPIC_FILTERS vocabulary.

HOW IT WORKS:
  1. Every keyword of every topic is compiled once into a case-insensitive
     whole-word regex ("flood" matches "Flood warning", not "floodlight").
  2. An article matches a topic if any keyword hits title + summary.
  3. Failing that, the URL is checked for any hyphen-separated part of the
     slug ("weather-wildfire" → "weather", "wildfire"), so section paths like
     /weather/ tag an article even when its headline is terse.

Classification only ADDS categories. Whether an article is kept is decided
by the orchestrator against the caller's filters.

The same vocabulary also produces the boolean query clauses handed to the
engine (build_query_for_filters) and the plain search terms derived from
them for on-site search (clean_filter_terms).
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Set

from newsdesk.config import TOPIC_FILTERS, TOPIC_SLUGS
from newsdesk.schemas import TopicFilter

logger = logging.getLogger(__name__)

_CLAUSE_PUNCT_RE = re.compile(r'[()"\']')
_CLAUSE_SPLIT_RE = re.compile(r'OR|AND|\s+')
_MIN_TERM_LENGTH = 3


class UnknownTopicError(ValueError):
    """Raised when a caller names a topic slug outside the vocabulary."""

    def __init__(self, slug: str):
        super().__init__(f"Unknown filter: {slug}")
        self.slug = slug


def get_topic_filters() -> List[TopicFilter]:
    return [TopicFilter(**topic) for topic in TOPIC_FILTERS]


def validate_topic_filters(slugs: Iterable[str]) -> List[str]:
    """Return the slugs de-duplicated in order; raise on the first unknown one."""
    valid: List[str] = []
    for slug in slugs or []:
        if slug not in TOPIC_SLUGS:
            raise UnknownTopicError(slug)
        if slug not in valid:
            valid.append(slug)
    return valid


def _normalized_keywords(topic: Dict) -> List[str]:
    return [kw.strip().lower() for kw in topic.get("keywords", []) if kw.strip()]


def build_query_for_filters(slugs: Iterable[str]) -> List[str]:
    """
    One boolean clause per distinct keyword set.

    ["weather-flood"] → ['(flood OR "flash flood" OR inundation OR levee)']

    Unknown slugs are ignored (validation happens at the HTTP boundary);
    repeating a slug, or two slugs with identical keywords, yields one clause.
    """
    by_slug = {topic["slug"]: topic for topic in TOPIC_FILTERS}
    clauses: List[str] = []
    seen: Set[str] = set()

    for slug in slugs or []:
        topic = by_slug.get(slug)
        if topic is None:
            continue
        keywords = _normalized_keywords(topic)
        if not keywords:
            continue
        key = "|".join(keywords)
        if key in seen:
            continue
        seen.add(key)
        clause = " OR ".join(f'"{kw}"' if " " in kw else kw for kw in keywords)
        clauses.append(f"({clause})")

    return clauses


def clean_filter_terms(clauses: Iterable[str]) -> List[str]:
    """
    Flatten query clauses into lower-case search terms of 3+ characters.

    '(flood OR "flash flood")' → ["flood", "flash"]
    """
    terms: List[str] = []
    for clause in clauses or []:
        sanitized = _CLAUSE_PUNCT_RE.sub(" ", clause)
        for part in _CLAUSE_SPLIT_RE.split(sanitized):
            part = part.strip()
            if len(part) >= _MIN_TERM_LENGTH:
                term = part.lower()
                if term not in terms:
                    terms.append(term)
    return terms


class TopicClassifier:
    """
    Maps article text (and optionally its URL) to topic slugs.

    Usage:
        classifier = TopicClassifier()
        classifier.classify("Flash flood closes highway", "https://x.com/news/1")
        # → {"weather-flood", "transport-road"}
    """

    def __init__(self, topics: Optional[List[Dict]] = None):
        topics = TOPIC_FILTERS if topics is None else topics
        self._matchers: List[tuple] = []
        for topic in topics:
            patterns: List[Pattern] = [
                re.compile(rf'\b{re.escape(kw)}\b', re.IGNORECASE)
                for kw in _normalized_keywords(topic)
            ]
            self._matchers.append((topic["slug"], patterns, topic["slug"].split("-")))
        logger.debug(f"Compiled matchers for {len(self._matchers)} topics")

    def classify(self, text: str, url: Optional[str] = None) -> Set[str]:
        haystack = text or ""
        url_haystack = (url or "").lower()
        matches: Set[str] = set()

        for slug, patterns, slug_parts in self._matchers:
            if any(p.search(haystack) for p in patterns):
                matches.add(slug)
                continue
            if url_haystack and any(part in url_haystack for part in slug_parts):
                matches.add(slug)

        return matches
