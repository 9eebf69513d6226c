"""
Schemas package -- all data models for the newsdesk engine.

Models are organized by domain in submodules:
  - base.py: GeoContext, TopicFilter (value objects)
  - news.py: RawCandidate, NormalizedItem, ScrapeRequest
"""

# base.py -- value objects
from newsdesk.schemas.base import GeoContext, TopicFilter

# news.py -- article models
from newsdesk.schemas.news import RawCandidate, NormalizedItem, ScrapeRequest

__all__ = [
    # base
    "GeoContext", "TopicFilter",
    # news
    "RawCandidate", "NormalizedItem", "ScrapeRequest",
]
