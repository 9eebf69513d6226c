"""
Configuration management for the newsdesk scraping engine.

Runtime knobs come from environment variables (or a .env file) through
pydantic-settings. Static vocabularies live here too, next to the settings
they are tuned with:
  - TOPIC_FILTERS: topic slugs, labels, and the keywords that define them
  - FEED_PATHS:    well-known syndication paths probed on every domain
  - SEARCH_PATHS:  on-site search templates used by the HTML fallback
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # "test" switches the engine to fast politeness settings (see properties below)
    app_env: str = Field(default="development", alias="APP_ENV")

    # ── Politeness ──
    # Identifies us to origins; robots.txt groups naming ROBOTS_AGENT_NAME apply to us
    user_agent: str = Field(
        default="newsdesk/1.0 (+https://github.com/newsdesk/newsdesk; contact: ops@newsdesk.local)",
        alias="USER_AGENT",
    )
    robots_agent_name: str = Field(default="newsdesk", alias="ROBOTS_AGENT_NAME")
    # Robots rules are re-fetched lazily once this TTL has elapsed
    robots_ttl_seconds: int = Field(default=3600, alias="ROBOTS_TTL_SECONDS")
    # Max origins kept in the robots cache (least recently used evicted first)
    robots_cache_max: int = Field(default=200, alias="ROBOTS_CACHE_MAX")
    # Minimum gap between two requests to the same domain
    domain_rate_limit_ms: int = Field(default=1000, alias="DOMAIN_RATE_LIMIT_MS")

    # ── Fetching ──
    fetch_max_retries: int = Field(default=2, alias="FETCH_MAX_RETRIES")
    # Retry N waits FETCH_RETRY_DELAY_MS * N
    fetch_retry_delay_ms: int = Field(default=300, alias="FETCH_RETRY_DELAY_MS")
    # Per-request deadline, so a hanging origin cannot hold a worker forever
    fetch_timeout_seconds: float = Field(default=12.0, alias="FETCH_TIMEOUT_SECONDS")
    # Redirects are followed by hand so every hop is robots-checked and throttled
    fetch_max_redirects: int = Field(default=5, alias="FETCH_MAX_REDIRECTS")

    # ── Aggregation ──
    scrape_max_concurrency: int = Field(default=4, alias="SCRAPE_MAX_CONCURRENCY")
    max_items_per_domain: int = Field(default=40, alias="MAX_ITEMS_PER_DOMAIN")
    max_result_limit: int = Field(default=200, alias="MAX_RESULT_LIMIT")
    # Titles whose term-frequency cosine similarity is ABOVE this are duplicates
    dedup_similarity_threshold: float = Field(default=0.8, alias="DEDUP_SIMILARITY_THRESHOLD")

    # ── HTTP boundary ──
    default_page_size: int = Field(default=50, alias="DEFAULT_PAGE_SIZE")
    default_since_hours: int = Field(default=48, alias="DEFAULT_SINCE_HOURS")
    scrape_sources_path: str = Field(default="./data/scrape_sources.json", alias="SCRAPE_SOURCES_PATH")
    geocoder_url: str = Field(
        default="https://nominatim.openstreetmap.org/search", alias="GEOCODER_URL"
    )
    # Resolved queries memoized per geocoder (least recently used evicted first)
    geocoder_cache_max: int = Field(default=500, alias="GEOCODER_CACHE_MAX")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_test(self) -> bool:
        return self.app_env.lower() == "test"

    @property
    def effective_rate_limit_ms(self) -> int:
        """Rate limit actually applied; CI runs can't afford a full second per request."""
        return 5 if self.is_test else self.domain_rate_limit_ms

    @property
    def effective_max_retries(self) -> int:
        return 0 if self.is_test else self.fetch_max_retries

    def get_scraper_config(self) -> dict:
        """Summary of the effective engine settings (exposed on /health)."""
        return {
            "app_env": self.app_env,
            "max_concurrency": self.scrape_max_concurrency,
            "domain_rate_limit_ms": self.effective_rate_limit_ms,
            "max_items_per_domain": self.max_items_per_domain,
            "max_retries": self.effective_max_retries,
            "fetch_timeout_seconds": self.fetch_timeout_seconds,
            "max_redirects": self.fetch_max_redirects,
            "robots_ttl_seconds": self.robots_ttl_seconds,
            "dedup_similarity_threshold": self.dedup_similarity_threshold,
            "max_result_limit": self.max_result_limit,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Probed in this order on every domain during feed discovery
FEED_PATHS = ["/rss", "/feed", "/feeds", "/rss.xml", "/atom.xml"]

# On-site search templates for the HTML fallback.
# "/search" takes the term as ?q=, "/?s=" is the WordPress convention.
SEARCH_PATHS = ["/search", "/?s="]

# At most this many derived terms are turned into search URLs per template
MAX_SEARCH_TERMS = 3

# Topic vocabulary. Slugs are the public filter identifiers; keywords are
# matched as whole words (case-insensitive) against title + summary.
# Slug parts (split on "-") double as URL hints: ".../weather/..." tags weather-*.
TOPIC_FILTERS = [
    {"slug": "crime-violent", "label": "Violent Crime",
     "keywords": ["shooting", "stabbing", "homicide", "assault", "violence"]},
    {"slug": "crime-property", "label": "Property Crime",
     "keywords": ["burglary", "robbery", "theft", "vandalism", "break-in"]},
    {"slug": "crime-cyber", "label": "Cyber & Fraud",
     "keywords": ["cyberattack", "ransomware", "phishing", "fraud", "identity theft"]},
    {"slug": "crime-terror", "label": "Terror & Security",
     "keywords": ["terror", "extremist", "bomb threat", "security alert", "counterterrorism"]},
    {"slug": "crime-unrest", "label": "Civil Unrest",
     "keywords": ["protest", "riot", "demonstration", "civil unrest", "strike rally"]},
    {"slug": "crime-police", "label": "Law Enforcement",
     "keywords": ["police", "law enforcement", "officer-involved", "arrest", "investigation"]},
    {"slug": "weather-storm", "label": "Storms",
     "keywords": ["storm", "hurricane", "typhoon", "cyclone", "severe weather"]},
    {"slug": "weather-flood", "label": "Flooding",
     "keywords": ["flood", "flash flood", "inundation", "levee"]},
    {"slug": "weather-wildfire", "label": "Wildfire",
     "keywords": ["wildfire", "bushfire", "forest fire", "grass fire"]},
    {"slug": "weather-heat", "label": "Heat & Cold",
     "keywords": ["heatwave", "cold snap", "temperature record", "heat advisory", "polar vortex"]},
    {"slug": "weather-quake", "label": "Earthquakes",
     "keywords": ["earthquake", "seismic", "aftershock", "magnitude"]},
    {"slug": "weather-landslide", "label": "Landslides",
     "keywords": ["landslide", "mudslide", "rockslide"]},
    {"slug": "health-outbreak", "label": "Disease Outbreak",
     "keywords": ["outbreak", "epidemic", "pandemic", "virus", "infection"]},
    {"slug": "health-hospital", "label": "Hospital Incidents",
     "keywords": ["hospital incident", "ER closure", "medical emergency", "ambulance delay"]},
    {"slug": "health-ems", "label": "Emergency Services",
     "keywords": ["emergency services", "paramedic", "ems", "ambulance"]},
    {"slug": "transport-road", "label": "Road & Traffic",
     "keywords": ["road closure", "traffic", "highway", "car crash", "accident"]},
    {"slug": "transport-rail", "label": "Rail & Transit",
     "keywords": ["train", "railway", "metro", "subway", "rail service"]},
    {"slug": "transport-aviation", "label": "Aviation",
     "keywords": ["flight", "airport", "aviation", "runway", "airline"]},
    {"slug": "transport-maritime", "label": "Maritime",
     "keywords": ["port", "shipping", "maritime", "vessel", "coast guard"]},
    {"slug": "transport-strike", "label": "Strikes & Labor",
     "keywords": ["strike", "walkout", "union action", "industrial action"]},
    {"slug": "infrastructure-power", "label": "Power & Utilities",
     "keywords": ["power outage", "electricity", "grid failure", "utility disruption"]},
    {"slug": "infrastructure-water", "label": "Water & Sewage",
     "keywords": ["water main", "water shortage", "sewage", "boil water notice"]},
    {"slug": "infrastructure-telecom", "label": "Telecom & Internet",
     "keywords": ["internet outage", "telecom", "network disruption", "fiber cut"]},
    {"slug": "economy-market", "label": "Markets & Economy",
     "keywords": ["market", "inflation", "economy", "gdp", "recession"]},
    {"slug": "governance-policy", "label": "Policy & Regulation",
     "keywords": ["policy", "legislation", "government order", "decree", "executive order"]},
    {"slug": "community-events", "label": "Community Alerts",
     "keywords": ["community alert", "public notice", "local event", "community safety"]},
    {"slug": "technology", "label": "Technology & Cyber",
     "keywords": ["technology", "software", "data breach", "cybersecurity"]},
    {"slug": "environment", "label": "Environment & Climate",
     "keywords": ["environment", "climate", "emissions", "conservation", "pollution"]},
]

TOPIC_SLUGS = frozenset(topic["slug"] for topic in TOPIC_FILTERS)
