"""
newsdesk - Main Entry Point.
FastAPI server and CLI interface.
"""

import argparse
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, news
from .config import get_settings
from .news.scraper import ScrapeOrchestrator, scrape_news
from .news.topics import UnknownTopicError, validate_topic_filters
from .tools.geocode import NominatimGeocoder
from .tools.sources_store import SourcesStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

# Suppress noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the long-lived engine objects once; close their HTTP clients on shutdown."""
    settings = get_settings()
    app.state.settings = settings
    app.state.orchestrator = ScrapeOrchestrator()
    app.state.geocoder = NominatimGeocoder()
    app.state.sources_store = SourcesStore()
    logger.info(
        f"Starting newsdesk ({settings.app_env}), "
        f"{len(app.state.sources_store.load_allowed_domains())} allowed domains"
    )
    try:
        yield
    finally:
        await app.state.orchestrator.aclose()
        await app.state.geocoder.aclose()
        logger.info("newsdesk stopped")


# Initialize FastAPI app
app = FastAPI(
    title="newsdesk",
    description="Robots-aware news discovery and aggregation over an allowlist of domains",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(news.router)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="newsdesk - news discovery over allowlisted domains"
    )
    parser.add_argument(
        "--server",
        action="store_true",
        help="Start the FastAPI server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Server port (default: 8000)"
    )
    parser.add_argument(
        "--domains",
        nargs="*",
        default=None,
        help="Domains to scrape (default: the configured sources store)"
    )
    parser.add_argument(
        "--filters",
        nargs="*",
        default=[],
        help="Topic slugs, e.g. weather-flood crime-violent"
    )
    parser.add_argument(
        "--query",
        default="",
        help="Free-text keywords (space separated)"
    )
    parser.add_argument(
        "--hours",
        type=int,
        default=None,
        help="Only include items from the last N hours"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum number of items (1-200)"
    )
    return parser


async def cli_main(args: argparse.Namespace):
    """Run one scrape and print the items as JSON."""
    settings = get_settings()
    filters = validate_topic_filters(args.filters)
    domains = args.domains if args.domains else SourcesStore().load_allowed_domains()
    hours = args.hours if args.hours is not None else settings.default_since_hours

    items = await scrape_news(
        domains=domains,
        since=datetime.now(timezone.utc) - timedelta(hours=hours),
        topic_filters=filters,
        keywords=args.query.split(),
        limit=args.limit,
    )
    print(json.dumps([item.model_dump(mode="json") for item in items], indent=2))


def main():
    """Entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args()
    if args.server:
        import uvicorn
        logger.info(f"Starting server on port {args.port}...")
        uvicorn.run(app, host="0.0.0.0", port=args.port)
        return

    try:
        asyncio.run(cli_main(args))
    except UnknownTopicError as e:
        parser.error(str(e))


if __name__ == "__main__":
    main()
