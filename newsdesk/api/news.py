"""News API router -- validated scrape requests and cursor pagination.

Flow:
  POST /api/news      validate filters → geocode → scrape page 1
  GET  /api/news?next decode cursor → scrape page N (no geocoding; the
                      resolved location travels inside the cursor)

Pagination re-runs the scrape with limit min(page_size * N, MAX_RESULT_LIMIT)
and slices page N out of it. A next cursor is issued only while that limit
is below the maximum and the scrape filled it exactly.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from newsdesk.api.cursor import InvalidCursorError, NewsCursor, decode_cursor, encode_cursor
from newsdesk.api.dependencies import Geocoder, Orchestrator, Sources
from newsdesk.api.schemas import NewsFeedResponse, NewsQuery, TopicResponse
from newsdesk.config import get_settings
from newsdesk.news.scraper import ScrapeOrchestrator, clamp_limit
from newsdesk.news.topics import (
    UnknownTopicError,
    build_query_for_filters,
    get_topic_filters,
    validate_topic_filters,
)
from newsdesk.schemas import ScrapeRequest
from newsdesk.tools.sources_store import SourcesStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _keywords(query: Optional[str]) -> List[str]:
    return (query or "").split()


async def _run_page(
    cursor: NewsCursor,
    orchestrator: ScrapeOrchestrator,
    sources: SourcesStore,
) -> NewsFeedResponse:
    settings = get_settings()
    max_limit = settings.max_result_limit
    effective_limit = min(cursor.page_size * cursor.page_number, max_limit)

    try:
        domains = sources.load_allowed_domains()
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load scrape sources: {e}")
        raise HTTPException(status_code=500, detail="Failed to load scrape sources")

    request = ScrapeRequest(
        topic_filters=cursor.topic_filters,
        filter_query_clauses=build_query_for_filters(cursor.topic_filters),
        location_context=cursor.location_context,
        free_text_keywords=_keywords(cursor.free_text_query),
        domains=domains,
        since=datetime.fromtimestamp(cursor.since_timestamp / 1000, tz=timezone.utc),
        result_limit=effective_limit,
    )

    try:
        items = await orchestrator.scrape(request)
    except Exception as e:
        logger.exception(f"Scrape failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to load news")

    start = (cursor.page_number - 1) * cursor.page_size
    page = items[start:start + cursor.page_size]

    has_more = effective_limit < max_limit and len(items) == effective_limit
    next_cursor = encode_cursor(cursor.next_page()) if has_more else None

    logger.info(
        f"[NEWS] page {cursor.page_number}: {len(page)} items "
        f"(scraped {len(items)}/{effective_limit}, more={has_more})"
    )
    return NewsFeedResponse(
        items=page,
        fetched_at=datetime.now(timezone.utc),
        next_cursor=next_cursor,
    )


@router.get("/topics", response_model=List[TopicResponse])
async def list_topics():
    return [TopicResponse(**topic.model_dump()) for topic in get_topic_filters()]


@router.post("/news", response_model=NewsFeedResponse, response_model_exclude_none=True)
async def search_news(
    body: NewsQuery,
    orchestrator: Orchestrator,
    geocoder: Geocoder,
    sources: Sources,
):
    try:
        filters = validate_topic_filters(body.filters)
    except UnknownTopicError as e:
        raise HTTPException(status_code=400, detail=str(e))

    location = None
    if body.location_query and body.location_query.strip():
        location = await geocoder.geocode(body.location_query.strip())
        if location is None:
            raise HTTPException(
                status_code=400, detail=f"Unable to resolve location: {body.location_query}"
            )

    settings = get_settings()
    if body.since is not None:
        since_ms = body.since
    else:
        since = datetime.now(timezone.utc) - timedelta(hours=settings.default_since_hours)
        since_ms = int(since.timestamp() * 1000)

    page_size = clamp_limit(
        settings.default_page_size if body.limit is None else body.limit,
        settings.max_result_limit,
    )
    query = (body.query or "").strip() or None

    cursor = NewsCursor(
        topic_filters=filters,
        free_text_query=query,
        since_timestamp=since_ms,
        page_size=page_size,
        page_number=1,
        location_context=location,
    )
    return await _run_page(cursor, orchestrator, sources)


@router.get("/news", response_model=NewsFeedResponse, response_model_exclude_none=True)
async def next_news_page(
    orchestrator: Orchestrator,
    sources: Sources,
    next_token: str = Query(..., alias="next"),
):
    try:
        cursor = decode_cursor(next_token)
        validate_topic_filters(cursor.topic_filters)
    except (InvalidCursorError, UnknownTopicError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _run_page(cursor, orchestrator, sources)
