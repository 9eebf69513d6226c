# Tools module
from .throttle import DomainThrottler
from .fetcher import FetchError, ResilientFetcher
from .robots import RobotsGate, RobotsRules, parse_robots
from .feed_parser import FeedExtractor
from .anchor_scanner import AnchorScanner, build_search_urls
from .geocode import NominatimGeocoder
from .sources_store import SourcesStore
from .domain_utils import (
    sanitize_domain,
    extract_clean_domain,
    is_valid_domain,
    resolve_url,
    path_of,
)

__all__ = [
    # Network discipline
    "DomainThrottler",
    "FetchError",
    "ResilientFetcher",
    "RobotsGate",
    "RobotsRules",
    "parse_robots",
    # Extraction
    "FeedExtractor",
    "AnchorScanner",
    "build_search_urls",
    # External services
    "NominatimGeocoder",
    "SourcesStore",
    # Domain utils
    "sanitize_domain",
    "extract_clean_domain",
    "is_valid_domain",
    "resolve_url",
    "path_of",
]
