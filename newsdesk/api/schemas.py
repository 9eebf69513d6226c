"""API response/request schemas -- camelCase on the wire to match the map frontend."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from newsdesk.api.cursor import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS
from newsdesk.schemas import NormalizedItem


# -- News --

class NewsQuery(BaseModel):
    filters: List[str] = Field(default_factory=list)
    location_query: Optional[str] = Field(default=None, alias="locationQuery")
    query: Optional[str] = None
    limit: Optional[int] = None   # Page size; DEFAULT_PAGE_SIZE when omitted
    # Unix milliseconds; now - DEFAULT_SINCE_HOURS when omitted
    since: Optional[int] = Field(default=None, ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS)

    class Config:
        populate_by_name = True


class NewsFeedResponse(BaseModel):
    items: List[NormalizedItem] = Field(default_factory=list)
    fetched_at: datetime = Field(alias="fetchedAt")
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")

    class Config:
        populate_by_name = True


# -- Topics --

class TopicResponse(BaseModel):
    slug: str
    label: str
    keywords: List[str] = Field(default_factory=list)
