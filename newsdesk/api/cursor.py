"""Pagination cursor -- opaque base64url(JSON) carrying everything needed to re-run a query."""

import base64
import binascii
import json
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from newsdesk.schemas import GeoContext

# Accepted Unix-millisecond range for `since`: the epoch up to 9999-12-31T23:59:59Z,
# the last whole second datetime can represent
MIN_TIMESTAMP_MS = 0
MAX_TIMESTAMP_MS = 253402300799000


class InvalidCursorError(ValueError):
    """Raised when a `next` token cannot be decoded into a NewsCursor."""


class NewsCursor(BaseModel):
    topic_filters: List[str] = Field(default_factory=list, alias="topicFilters")
    free_text_query: Optional[str] = Field(default=None, alias="freeTextQuery")
    since_timestamp: int = Field(
        ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS, alias="sinceTimestamp",
    )  # Unix milliseconds
    page_size: int = Field(ge=1, alias="pageSize")
    page_number: int = Field(default=1, ge=1, alias="pageNumber")
    location_context: Optional[GeoContext] = Field(default=None, alias="locationContext")

    class Config:
        populate_by_name = True
        frozen = True

    def next_page(self) -> "NewsCursor":
        return self.model_copy(update={"page_number": self.page_number + 1})


def encode_cursor(cursor: NewsCursor) -> str:
    payload = json.dumps(cursor.model_dump(by_alias=True, mode="json"), separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> NewsCursor:
    if not token or not token.strip():
        raise InvalidCursorError("Cursor is empty")
    token = token.strip()
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
        return NewsCursor.model_validate(data)
    except (binascii.Error, UnicodeError, ValueError, ValidationError) as e:
        raise InvalidCursorError(f"Invalid cursor: {e}") from e
