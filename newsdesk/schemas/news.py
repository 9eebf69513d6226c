"""
Article and request data models.

Hierarchy: ScrapeRequest → (per-domain pipeline) → RawCandidate → NormalizedItem

RawCandidate is what the extractors hand back before classification; it may
still be missing a usable date. NormalizedItem is the externally visible unit
and is frozen once produced.
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .base import GeoContext


class RawCandidate(BaseModel):
    """Unclassified article as extracted from a feed or a search page."""
    title: str
    url: str
    summary: str = ""
    published_raw: str = ""                  # Date text as found in the document
    published_at: Optional[datetime] = None  # Parsed, timezone-aware; None if unparseable
    image_url: Optional[str] = None


class NormalizedItem(BaseModel):
    """
    Article as returned by the engine.

    categories is sorted so two items built from the same input compare equal.
    published_at is always timezone-aware UTC and serializes as ISO-8601.
    """
    url: str
    title: str
    summary: str = ""
    image_url: Optional[str] = None
    published_at: datetime
    source_domain: str
    categories: List[str] = Field(default_factory=list)
    location_hints: Optional[List[str]] = None

    @field_validator('categories', mode='before')
    @classmethod
    def sort_categories(cls, v):
        return sorted(set(v or []))

    @field_validator('published_at', mode='after')
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    class Config:
        frozen = True


class ScrapeRequest(BaseModel):
    """
    Caller-supplied scrape parameters.

    The engine assumes topic_filters were already validated against the
    vocabulary; result_limit is clamped by the orchestrator, not here.
    """
    topic_filters: List[str] = Field(default_factory=list)
    filter_query_clauses: List[str] = Field(default_factory=list)
    location_context: Optional[GeoContext] = None
    free_text_keywords: List[str] = Field(default_factory=list)
    domains: List[str] = Field(default_factory=list)
    since: datetime
    result_limit: int = 50

    @field_validator('free_text_keywords', mode='before')
    @classmethod
    def coerce_keywords(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(k) for k in v if str(k).strip()]

    @field_validator('since', mode='after')
    @classmethod
    def since_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
