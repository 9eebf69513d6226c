"""Health check router -- service identity and effective scraper config."""

from datetime import datetime, timezone

from fastapi import APIRouter

from newsdesk.config import TOPIC_SLUGS, get_settings

router = APIRouter()


@router.get("/")
async def root():
    return {"service": "newsdesk", "version": "1.0.0"}


@router.get("/health")
async def health():
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "topics": len(TOPIC_SLUGS),
        "config": settings.get_scraper_config(),
    }
