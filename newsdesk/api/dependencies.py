"""FastAPI dependency injection -- Depends() patterns using app.state from lifespan."""

from typing import Annotated

from fastapi import Depends, Request

from newsdesk.news.scraper import ScrapeOrchestrator
from newsdesk.tools.geocode import NominatimGeocoder
from newsdesk.tools.sources_store import SourcesStore


def get_orchestrator(request: Request) -> ScrapeOrchestrator:
    return request.app.state.orchestrator


def get_geocoder(request: Request) -> NominatimGeocoder:
    return request.app.state.geocoder


def get_sources_store(request: Request) -> SourcesStore:
    return request.app.state.sources_store


# Type aliases for cleaner route signatures
Orchestrator = Annotated[ScrapeOrchestrator, Depends(get_orchestrator)]
Geocoder = Annotated[NominatimGeocoder, Depends(get_geocoder)]
Sources = Annotated[SourcesStore, Depends(get_sources_store)]
