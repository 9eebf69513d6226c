"""
Two-stage article deduplication for the aggregated result list.

DEDUP PIPELINE (2 stages):
  1. URL DEDUP:    Canonical URL match (same article reached via two feeds,
                   with tracking fragments or a trailing slash)
  2. TITLE DEDUP:  Term-frequency cosine similarity between titles
                   (same story re-headlined, syndicated with a suffix)

ORDERING:
  Input is expected newest-first, and the first occurrence always wins, so
  the newest variant of a cluster survives. Output preserves input order.

THRESHOLD:
  A title is a duplicate only when its similarity to an accepted title is
  strictly ABOVE the threshold (0.8 by default). Exactly 0.8 is kept.

WHY plain cosine and not MinHash:
  A single scrape returns at most a few hundred items; the O(n^2) title
  comparison is far below a millisecond budget and, unlike MinHash, exact,
  so the threshold boundary behaves deterministically.
"""

import logging
import math
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from newsdesk.config import get_settings

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r'[\W_]+')


def canonical_url(url: str) -> str:
    """
    Drop the fragment and one trailing slash from the path.

    "https://x.com/a/#top" → "https://x.com/a"
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    path = parts.path[:-1] if parts.path.endswith("/") else parts.path
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def tokenize(text: str) -> List[str]:
    return _NON_ALNUM_RE.sub(" ", (text or "").lower()).split()


def _term_frequencies(text: str) -> Dict[str, int]:
    return Counter(tokenize(text))


def _cosine(freq_a: Dict[str, int], freq_b: Dict[str, int]) -> float:
    if not freq_a or not freq_b:
        return 0.0
    dot = sum(count * freq_b.get(token, 0) for token, count in freq_a.items())
    if not dot:
        return 0.0
    norm_a = math.sqrt(sum(c * c for c in freq_a.values()))
    norm_b = math.sqrt(sum(c * c for c in freq_b.values()))
    return dot / (norm_a * norm_b)


def cosine_similarity(a: str, b: str) -> float:
    """Cosine of the term-frequency vectors of two titles; 0.0 if either is empty."""
    return _cosine(_term_frequencies(a), _term_frequencies(b))


class Deduplicator:
    """
    Removes URL and near-identical-title duplicates.

    Works on anything with `url` and `title` attributes (NormalizedItem,
    RawCandidate), so it can run before or after normalization.
    """

    def __init__(self, threshold: Optional[float] = None):
        self.threshold = get_settings().dedup_similarity_threshold if threshold is None else threshold

    def dedupe(self, items: Sequence) -> list:
        if not items:
            return []

        initial_count = len(items)

        # Stage 1: canonical URL
        survivors = self._url_dedup(items)
        stage1_count = len(survivors)

        # Stage 2: title similarity
        survivors = self._title_dedup(survivors)

        total_removed = initial_count - len(survivors)
        if total_removed > 0:
            logger.info(
                f"Dedup summary: {initial_count} → {len(survivors)} "
                f"(url: {initial_count - stage1_count}, title: {stage1_count - len(survivors)})"
            )
        return survivors

    def _url_dedup(self, items: Sequence) -> list:
        seen = set()
        unique = []
        for item in items:
            key = canonical_url(item.url)
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique

    def _title_dedup(self, items: Sequence) -> list:
        accepted = []
        accepted_freqs: List[Dict[str, int]] = []
        dup_examples = []

        for item in items:
            freq = _term_frequencies(item.title)
            best = max((_cosine(freq, other) for other in accepted_freqs), default=0.0)
            if best > self.threshold:
                if len(dup_examples) < 3:
                    dup_examples.append(f"'{item.title[:40]}' ({best:.2f})")
                continue
            accepted.append(item)
            accepted_freqs.append(freq)

        if dup_examples:
            logger.debug(f"  Title dedup examples: {dup_examples}")
        return accepted
