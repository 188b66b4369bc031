"""Fetch and cache the pickleball news RSS feed."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

import requests
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

MAX_ITEMS = 8
MAX_DESCRIPTION = 300
MAX_CATEGORIES = 3

NAMESPACES = {
    "dc": "http://purl.org/dc/elements/1.1/",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "media": "http://search.yahoo.com/mrss/",
}

TAG_RE = re.compile(r"<[^>]*>")


class FeedError(Exception):
    pass


@dataclass
class FeedCache:
    value: list[dict[str, Any]] | None = None
    expires_at: datetime | None = None

    def get(self, now: datetime) -> list[dict[str, Any]] | None:
        if self.value is None or self.expires_at is None or now >= self.expires_at:
            return None
        return self.value

    def set(self, value: list[dict[str, Any]], *, now: datetime, ttl: timedelta) -> None:
        self.value = value
        self.expires_at = now + ttl


def _text(element: ET.Element, path: str) -> str:
    found = element.find(path, NAMESPACES)
    if found is None or found.text is None:
        return ""
    return found.text.strip()


def _description(item: ET.Element) -> str:
    raw = _text(item, "description") or _text(item, "content:encoded")
    plain = " ".join(TAG_RE.sub("", raw).split())
    return plain[:MAX_DESCRIPTION].strip()


def _image(item: ET.Element) -> str | None:
    enclosure = item.find("enclosure")
    if enclosure is not None and enclosure.get("url"):
        return enclosure.get("url")
    media = item.find("media:content", NAMESPACES)
    if media is not None and media.get("url"):
        return media.get("url")
    return None


def parse_feed(content: bytes) -> list[dict[str, Any]]:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise FeedError(f"Feed is not valid XML: {exc}") from exc

    items = []
    for item in root.iter("item"):
        if len(items) >= MAX_ITEMS:
            break
        categories = [c.text.strip() for c in item.findall("category") if c.text and c.text.strip()]
        items.append(
            {
                "title": _text(item, "title"),
                "link": _text(item, "link"),
                "pub_date": _text(item, "pubDate"),
                "description": _description(item),
                "image": _image(item),
                "creator": _text(item, "dc:creator") or None,
                "categories": categories[:MAX_CATEGORIES],
            }
        )
    return items


class NewsFeed:
    def __init__(
        self,
        *,
        url: str | None = None,
        ttl: timedelta | None = None,
        timeout: float = 10.0,
        cache: FeedCache | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.url = url
        self.ttl = ttl
        self.timeout = timeout
        self.cache = cache or FeedCache()
        self.clock = clock

    def _url(self) -> str:
        return self.url or settings.NEWS_FEED_URL

    def _ttl(self) -> timedelta:
        if self.ttl is not None:
            return self.ttl
        return timedelta(seconds=getattr(settings, "NEWS_FEED_TTL_SECONDS", 15 * 60))

    def items(self) -> list[dict[str, Any]]:
        now = self.clock()
        cached = self.cache.get(now)
        if cached is not None:
            return cached

        try:
            response = requests.get(self._url(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FeedError(str(exc)) from exc

        items = parse_feed(response.content)
        self.cache.set(items, now=now, ttl=self._ttl())
        logger.info("Fetched %s news items from %s", len(items), self._url())
        return items
