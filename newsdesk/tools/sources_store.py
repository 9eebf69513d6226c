"""
Scrape source allowlist storage.

Storage: SCRAPE_SOURCES_PATH (default data/scrape_sources.json), one JSON
document:

    {"domains": ["reuters.com", ...], "blocked": ["spam.net"],
     "updated_at": "...", "updated_by": "..."}

A missing file is an empty allowlist; the engine then does nothing.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from newsdesk.config import get_settings
from newsdesk.tools.domain_utils import extract_clean_domain

logger = logging.getLogger(__name__)


class ScrapeSources(BaseModel):
    domains: List[str] = Field(default_factory=list)
    blocked: List[str] = Field(default_factory=list)
    updated_at: str = Field(default_factory=lambda: datetime.fromtimestamp(0, timezone.utc).isoformat())
    updated_by: str = "system"


def _unique_lower(values: List[str]) -> List[str]:
    seen = []
    for value in values:
        value = (value or "").strip().lower()
        if value and value not in seen:
            seen.append(value)
    return seen


class SourcesStore:
    """
    File-backed allowlist.

    Usage:
        store = SourcesStore()
        store.update_sources(["Example.com"], blocked=["spam.net"], actor="ops")
        domains = store.load_allowed_domains()   # ["example.com"]
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or get_settings().scrape_sources_path)

    def load_sources(self) -> ScrapeSources:
        if not self.path.exists():
            return ScrapeSources()
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return ScrapeSources(**data)

    def save_sources(self, sources: ScrapeSources) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(sources.model_dump(), f, indent=2)
        logger.info(f"Saved {len(sources.domains)} scrape sources to {self.path}")

    def update_sources(self, domains: List[str], blocked: Optional[List[str]] = None, actor: str = "system") -> ScrapeSources:
        sources = ScrapeSources(
            domains=_unique_lower(domains),
            blocked=_unique_lower(blocked or []),
            updated_at=datetime.now(timezone.utc).isoformat(),
            updated_by=actor,
        )
        self.save_sources(sources)
        return sources

    def load_allowed_domains(self) -> List[str]:
        """Allowlisted hosts minus blocked ones; invalid entries are skipped."""
        sources = self.load_sources()
        blocked = {extract_clean_domain(d) for d in sources.blocked} - {None}

        allowed = []
        for raw in sources.domains:
            domain = extract_clean_domain(raw)
            if domain is None:
                logger.warning(f"Ignoring invalid scrape source: {raw!r}")
                continue
            if domain in blocked or domain in allowed:
                continue
            allowed.append(domain)
        return allowed
