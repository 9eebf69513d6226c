"""
Common value objects used across the engine and the HTTP boundary.

These are small, immutable records: where a request is about (GeoContext)
and what a topic filter means (TopicFilter).
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class GeoContext(BaseModel):
    """Resolved location a scrape is scoped to (output of the geocoder)."""
    lat: float
    lon: float
    display_name: str
    country_code: Optional[str] = None
    admin_levels: List[str] = Field(default_factory=list)  # e.g. ["England", "Greater London"]

    class Config:
        frozen = True

    def hints(self) -> List[str]:
        """Display name followed by admin levels, without repeats."""
        seen = set()
        out = []
        for value in [self.display_name, *self.admin_levels]:
            if value and value not in seen:
                seen.add(value)
                out.append(value)
        return out


class TopicFilter(BaseModel):
    """One entry of the topic vocabulary."""
    slug: str
    label: str
    keywords: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
