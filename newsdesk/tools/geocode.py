"""
Nominatim (OpenStreetMap) REST client -- free-text location → GeoContext.
No API key. Public instance policy: one request per second, descriptive
User-Agent. Point GEOCODER_URL at a self-hosted instance for heavier use.
"""
from __future__ import annotations

import logging
import re
from collections import OrderedDict
from typing import Any

import httpx

from newsdesk.config import get_settings
from newsdesk.schemas import GeoContext
from newsdesk.tools.throttle import DomainThrottler

logger = logging.getLogger(__name__)

_LAT_LON_RE = re.compile(r'^(-?\d+(?:\.\d+)?),\s*(-?\d+(?:\.\d+)?)$')

# Broadest first: state / county before city / village
_ADMIN_KEYS = (
    "state", "county", "region", "state_district",
    "city", "town", "village", "municipality",
)


def parse_lat_lon(value: str) -> GeoContext | None:
    """"51.5, -0.12" → GeoContext without a network call."""
    match = _LAT_LON_RE.match(value.strip())
    if not match:
        return None
    lat, lon = float(match.group(1)), float(match.group(2))
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return GeoContext(lat=lat, lon=lon, display_name=f"{lat}, {lon}")


def to_geo_context(payload: Any) -> GeoContext | None:
    """Map one Nominatim jsonv2 result onto a GeoContext."""
    if not isinstance(payload, dict):
        return None
    try:
        lat = float(payload.get("lat"))
        lon = float(payload.get("lon"))
    except (TypeError, ValueError):
        return None

    address = payload.get("address")
    if not isinstance(address, dict):
        address = {}
    admin_levels = [
        address[key].strip() for key in _ADMIN_KEYS
        if isinstance(address.get(key), str) and address[key].strip()
    ]
    country_code = address.get("country_code")
    display_name = payload.get("display_name")
    if not isinstance(display_name, str) or not display_name.strip():
        display_name = f"{lat},{lon}"
    return GeoContext(
        lat=lat,
        lon=lon,
        display_name=display_name,
        country_code=country_code.upper() if isinstance(country_code, str) else None,
        admin_levels=admin_levels,
    )


class NominatimGeocoder:
    """
    Resolve a location query. Any failure (HTTP error, empty result, bad
    payload) yields None; the HTTP layer turns that into a 400.

    Results are memoized per query in a bounded LRU (GEOCODER_CACHE_MAX).
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
        cache_max: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.geocoder_url).rstrip("/")
        self.headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "application/json",
        }
        self._client = client
        self._owns_client = client is None
        self._throttler = DomainThrottler(min_interval_ms=1000)
        self.cache_max = settings.geocoder_cache_max if cache_max is None else cache_max
        self._cache: OrderedDict[str, GeoContext | None] = OrderedDict()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=10.0)
        return self._client

    async def geocode(self, query: str) -> GeoContext | None:
        query = (query or "").strip()
        if not query:
            return None
        if query in self._cache:
            self._cache.move_to_end(query)
            return self._cache[query]

        direct = parse_lat_lon(query)
        if direct is not None:
            self._remember(query, direct)
            return direct

        params = {
            "q": query,
            "format": "jsonv2",
            "addressdetails": "1",
            "limit": "1",
            "dedupe": "1",
        }
        try:
            await self._throttler.before_request("geocoder")
            resp = await self._get_client().get(self.base_url, params=params, headers=self.headers)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException:
            logger.warning(f"Geocoder timeout for query: {query[:50]}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Geocoder error for '{query[:50]}': {e}")
            return None

        result = to_geo_context(data[0]) if isinstance(data, list) and data else None
        if result is None:
            logger.info(f"Geocoder found nothing for '{query[:50]}'")
        self._remember(query, result)
        return result

    def _remember(self, query: str, result: GeoContext | None) -> None:
        self._cache[query] = result
        self._cache.move_to_end(query)
        while len(self._cache) > self.cache_max:
            self._cache.popitem(last=False)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
