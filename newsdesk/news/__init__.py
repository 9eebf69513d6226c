"""
News discovery and aggregation.

Modules:
- topics: Keyword topic vocabulary, classification and query clauses
- dedup: Canonical-URL + title-cosine duplicate removal
- scheduler: Bounded worker pool for per-domain pipelines
- scraper (ScrapeOrchestrator): Feed discovery, search fallback, final assembly
"""

from newsdesk.news.topics import TopicClassifier, UnknownTopicError
from newsdesk.news.dedup import Deduplicator
from newsdesk.news.scheduler import run_with_concurrency
from newsdesk.news.scraper import ScrapeOrchestrator, scrape_news
