"""
RSS / Atom feed extraction.

feedparser does the XML work; this module only decides which fields become
a RawCandidate:

  title     tags stripped and entities decoded, unless feedparser already
            delivered it as plain text
  url       <link> text (RSS) or <link href> (Atom)
  summary   <description> / <summary>, tags stripped
  date      RSS: pubDate, then updated. Atom: updated, then published.
  image     media:content, media:thumbnail, then an image <enclosure>

Entries with an empty title or link are dropped without logging.
"""

import calendar
import html
import io
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import feedparser

from newsdesk.schemas import RawCandidate

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r'<[^>]+>')
_WS_RE = re.compile(r'\s+')
_HTML_TYPES = ("text/html", "application/xhtml+xml")


def clean_text(value: Optional[str], markup: bool = True) -> str:
    """
    Normalize display text.

    markup=True:  `value` is an HTML fragment; strip tags, decode entities once.
    markup=False: `value` is already plain text (a decoded DOM string);
                  only whitespace is collapsed, so a literal "&lt;" survives.
    """
    if not value:
        return ""
    text = value
    if markup:
        text = html.unescape(_TAG_RE.sub(' ', text))
    return _WS_RE.sub(' ', text).strip()


def _is_markup(entry: Dict[str, Any], field: str) -> bool:
    """Whether feedparser left `field` as HTML (entities still encoded) or as plain text."""
    detail = entry.get(f"{field}_detail") or {}
    return detail.get("type", "text/html") in _HTML_TYPES


class FeedExtractor:
    """
    Turns feed XML into RawCandidates.

    Usage:
        candidates = FeedExtractor().extract(response.text)
    """

    def extract(self, xml_text: Union[str, bytes]) -> List[RawCandidate]:
        if not xml_text or not xml_text.strip():
            return []

        # feedparser treats a bare string as a URL or filename first; a stream is never fetched
        data = xml_text.encode("utf-8") if isinstance(xml_text, str) else xml_text
        feed = feedparser.parse(io.BytesIO(data))
        is_atom = (feed.get("version") or "").startswith("atom")
        if feed.get("bozo") and not feed.entries:
            logger.debug(f"Unparseable feed: {feed.get('bozo_exception')}")
            return []

        candidates = []
        for entry in feed.entries:
            candidate = self._parse_entry(entry, is_atom)
            if candidate:
                candidates.append(candidate)
        return candidates

    def _parse_entry(self, entry: Dict[str, Any], is_atom: bool) -> Optional[RawCandidate]:
        title = clean_text(entry.get("title", ""), markup=_is_markup(entry, "title"))
        link = self._entry_link(entry)
        if not title or not link:
            return None

        summary = clean_text(
            entry.get("summary", "") or entry.get("description", ""),
            markup=_is_markup(entry, "summary"),
        )

        date_fields = ("updated", "published") if is_atom else ("published", "updated")
        published_raw = next((entry.get(name) for name in date_fields if entry.get(name)), "")
        published_at = None
        for name in date_fields:
            parsed = entry.get(f"{name}_parsed")
            if parsed:
                published_raw = entry.get(name) or published_raw
                published_at = datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
                break

        return RawCandidate(
            title=title,
            url=link,
            summary=summary,
            published_raw=published_raw,
            published_at=published_at,
            image_url=self._entry_image(entry),
        )

    @staticmethod
    def _entry_link(entry: Dict[str, Any]) -> str:
        link = (entry.get("link") or "").strip()
        if link:
            return link
        for candidate in entry.get("links", []) or []:
            href = (candidate.get("href") or "").strip()
            if href and candidate.get("rel", "alternate") == "alternate":
                return href
        return ""

    @staticmethod
    def _entry_image(entry: Dict[str, Any]) -> Optional[str]:
        for key in ("media_content", "media_thumbnail"):
            for media in entry.get(key, []) or []:
                url = media.get("url")
                if url:
                    return url

        for enclosure in entry.get("enclosures", []) or []:
            href = enclosure.get("href") or enclosure.get("url")
            kind = enclosure.get("type", "")
            if href and (not kind or kind.startswith("image")):
                return href
        return None
