"""
Domain and URL utilities.
Handles domain sanitizing, allowlist validation, and URL resolution.
"""

import re
import logging
from typing import Optional
from urllib.parse import urljoin, urlsplit
import tldextract

logger = logging.getLogger(__name__)

# Bundled public suffix snapshot only; validating an allowlist must not hit the network
_tld_extract = tldextract.TLDExtract(suffix_list_urls=())

_DISALLOWED_DOMAIN_CHARS = re.compile(r'[^a-z0-9.-]')


def sanitize_domain(domain: str) -> str:
    """
    Reduce a configured domain to a bare lower-case hostname.

    Examples:
        "Example.COM"      → "example.com"
        " news.site.org/ " → "news.site.org"
        "bad_host!.com"    → "badhost.com"
    """
    if not domain:
        return ""
    return _DISALLOWED_DOMAIN_CHARS.sub('', domain.strip().lower())


def extract_clean_domain(url_or_text: str) -> Optional[str]:
    """
    Extract a hostname from a URL or a bare domain string.

    Examples:
        "https://www.bbc.co.uk/news" → "www.bbc.co.uk"
        "theguardian.com"            → "theguardian.com"
        "not a domain"               → None

    Unlike sanitize_domain, subdomains are kept: feeds often live on
    "feeds.example.com" and robots.txt is per host.
    """
    if not url_or_text:
        return None

    text = url_or_text.strip()
    if "://" not in text:
        text = "https://" + text

    try:
        host = urlsplit(text).hostname or ""
    except ValueError:
        return None

    host = sanitize_domain(host)
    if is_valid_domain(host):
        return host
    return None


def is_valid_domain(domain: str) -> bool:
    """
    Check that a sanitized domain has a registrable name and a public suffix.

    Filters out:
    - Empty / too short values
    - Hosts with no public suffix ("localhost", "intranet")
    """
    if not domain or len(domain) < 4:
        return False

    extracted = _tld_extract(domain)
    if not extracted.domain or not extracted.suffix:
        logger.debug(f"Rejected domain without public suffix: {domain}")
        return False
    return True


def origin_url(domain: str) -> str:
    return f"https://{domain}"


def resolve_url(href: str, domain: str) -> str:
    """Resolve an href found on a page of `domain` into an absolute URL."""
    href = (href or "").strip()
    if href.startswith(("http://", "https://")):
        return href
    try:
        return urljoin(origin_url(domain) + "/", href)
    except ValueError:
        return href


def path_of(url: str) -> str:
    """Path plus query string, as matched against robots rules."""
    parts = urlsplit(url)
    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"
    return path
