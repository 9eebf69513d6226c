"""
robots.txt interpretation and caching.

PARSING:
  Lines are grouped into records by consecutive "User-agent" lines. If any
  record names our agent, only those records apply; otherwise the "*"
  records apply. Allow / Disallow values are kept as path prefixes with "*"
  wildcards removed. An empty Disallow means "allow everything" and is
  ignored.

MATCHING:
  The longest matching prefix wins. On equal length, Allow wins.

FAILURE POLICY:
  Fail-open. A non-2xx robots.txt is cached as "allow everything" (the site
  answered, it just has no policy). A network failure is also treated as
  allowed, but not cached, so the next request tries again.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from newsdesk.config import get_settings
from newsdesk.tools.domain_utils import origin_url
from newsdesk.tools.fetcher import FetchError, ResilientFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RobotsRules:
    allow: Tuple[str, ...] = field(default_factory=tuple)
    disallow: Tuple[str, ...] = field(default_factory=tuple)

    def is_allowed(self, path: str) -> bool:
        path = _normalize_path(path)
        longest_allow = max((len(rule) for rule in self.allow if path.startswith(rule)), default=-1)
        longest_disallow = max((len(rule) for rule in self.disallow if path.startswith(rule)), default=-1)
        if longest_disallow < 0:
            return True
        return longest_allow >= longest_disallow


ALLOW_ALL = RobotsRules()


def _normalize_path(value: str) -> str:
    return value if value.startswith("/") else f"/{value}"


def parse_robots(text: str, agent_name: str = "newsdesk") -> RobotsRules:
    """Parse robots.txt text into the rules that apply to `agent_name`."""
    agent = agent_name.lower()
    # Each record: (set of user agents, [(directive, value), ...])
    records: List[Tuple[set, List[Tuple[str, str]]]] = []
    current_agents: Optional[set] = None
    current_rules: List[Tuple[str, str]] = []
    last_was_agent = False

    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()

        if key == "user-agent":
            if not last_was_agent:
                current_agents = set()
                current_rules = []
                records.append((current_agents, current_rules))
            current_agents.add(value.lower())
            last_was_agent = True
            continue

        last_was_agent = False
        if current_agents is None or key not in ("allow", "disallow"):
            continue
        current_rules.append((key, value))

    named = [rules for agents, rules in records if agent in agents]
    applicable = named or [rules for agents, rules in records if "*" in agents]

    allow: List[str] = []
    disallow: List[str] = []
    for rules in applicable:
        for key, value in rules:
            prefix = value.replace("*", "")
            if not value:
                continue
            prefix = _normalize_path(prefix)
            if key == "allow":
                allow.append(prefix)
            else:
                disallow.append(prefix)

    return RobotsRules(allow=tuple(allow), disallow=tuple(disallow))


class RobotsGate:
    """
    Per-origin crawl permission check with a TTL + LRU cache.

    Usage:
        gate = RobotsGate(fetcher)
        if await gate.is_path_allowed("example.com", "/rss"):
            ...
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        ttl_seconds: Optional[int] = None,
        max_entries: Optional[int] = None,
        agent_name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.fetcher = fetcher
        self.ttl = settings.robots_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_entries = settings.robots_cache_max if max_entries is None else max_entries
        self.agent_name = agent_name or settings.robots_agent_name
        self._clock = clock
        self._cache: "OrderedDict[str, Tuple[RobotsRules, float]]" = OrderedDict()

    def _cached(self, domain: str) -> Optional[RobotsRules]:
        entry = self._cache.get(domain)
        if entry is None:
            return None
        rules, expires_at = entry
        if self._clock() >= expires_at:
            del self._cache[domain]
            return None
        self._cache.move_to_end(domain)
        return rules

    def _store(self, domain: str, rules: RobotsRules) -> None:
        self._cache[domain] = (rules, self._clock() + self.ttl)
        self._cache.move_to_end(domain)
        while len(self._cache) > self.max_entries:
            self._cache.popitem(last=False)

    async def get_rules(self, domain: str) -> RobotsRules:
        rules = self._cached(domain)
        if rules is not None:
            return rules

        robots_url = f"{origin_url(domain)}/robots.txt"
        try:
            response = await self.fetcher.fetch(domain, robots_url, max_retries=0)
        except FetchError as e:
            if e.status_code is not None:
                logger.debug(f"robots.txt for {domain} returned {e.status_code}, allowing all")
                self._store(domain, ALLOW_ALL)
            else:
                logger.warning(f"Failed to load robots.txt for {domain}: {e}")
            return ALLOW_ALL

        rules = parse_robots(response.text, self.agent_name)
        self._store(domain, rules)
        return rules

    async def is_path_allowed(self, domain: str, path: str) -> bool:
        rules = await self.get_rules(domain)
        allowed = rules.is_allowed(path)
        if not allowed:
            logger.debug(f"robots.txt disallows {domain}{path}")
        return allowed

    def clear(self) -> None:
        self._cache.clear()
