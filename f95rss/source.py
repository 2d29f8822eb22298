"""
Catalog source adapter

Fetches one snapshot of the latest-updates catalog and flattens it into raw
entry dicts with a common set of keys:

    id, link, title, creators, cover, previews, tags, prefixes

No validation happens here; that is the normalizer's job.
"""

import json
import re
from typing import Dict, List, Optional

import feedparser
import requests
import structlog

from f95rss.constants import USER_AGENT
from f95rss.exceptions import FetchError

logger = structlog.get_logger("source")

_IMG_SRC = re.compile(r'<img[^>]+src="([^"]+)"', re.IGNORECASE)


class CatalogSource:
    """The external catalog endpoint, either RSS/Atom or JSON encoded"""

    def __init__(self, url: str, timeout: float = 60, max_entries: int = 500, session: requests.Session = None):
        self.url = url
        self.timeout = timeout
        self.max_entries = max_entries
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Dict) -> "CatalogSource":
        source = settings["source"]
        return cls(url=source["url"], timeout=float(source["timeout"]), max_entries=int(source["max_entries"]))

    def fetch(self) -> List[Dict]:
        """
        Retrieve one snapshot.

        Raises:
            FetchError: network failure, timeout, non-2xx status or an
                unreadable body.
        """
        logger.info("Fetching catalog snapshot", url=self.url)
        try:
            response = self.session.get(self.url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Catalog request timed out after {self.timeout}s", url=self.url) from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise FetchError(f"Catalog returned HTTP {status}", url=self.url) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Catalog request failed: {e.__class__.__name__}", url=self.url) from e

        entries = self.parse_snapshot(response.content, response.headers.get("Content-Type", ""))

        if len(entries) > self.max_entries:
            logger.warning("Snapshot truncated", received=len(entries), kept=self.max_entries)
            entries = entries[: self.max_entries]

        logger.info("Catalog snapshot fetched", entries=len(entries))
        return entries

    def parse_snapshot(self, body: bytes, content_type: str = "") -> List[Dict]:
        head = body.lstrip()[:64].lower()
        if head.startswith(b"<!doctype html") or head.startswith(b"<html"):
            raise FetchError("Catalog returned HTML instead of a feed", url=self.url)

        if "json" in content_type.lower() or head.startswith(b"{") or head.startswith(b"["):
            return self._parse_json(body)
        return self._parse_feed(body)

    def _parse_json(self, body: bytes) -> List[Dict]:
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise FetchError("Catalog returned malformed JSON", url=self.url) from e

        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, dict) and isinstance(payload.get("entries"), list):
            items = payload["entries"]
        elif isinstance(payload, dict) and isinstance(payload.get("msg"), dict) and isinstance(
            payload["msg"].get("data"), list
        ):
            items = payload["msg"]["data"]
        else:
            if isinstance(payload, dict) and payload.get("status") == "error":
                raise FetchError("Catalog reported an error status", url=self.url)
            raise FetchError("Catalog JSON has no entry list", url=self.url)

        return [entry_from_json(item) for item in items]

    def _parse_feed(self, body: bytes) -> List[Dict]:
        parsed = feedparser.parse(body)
        if parsed.bozo and not parsed.entries:
            raise FetchError("Catalog returned an unreadable feed", url=self.url)
        if parsed.bozo:
            logger.warning("Catalog feed is not well-formed, using recovered entries", entries=len(parsed.entries))
        return [entry_from_feed(entry) for entry in parsed.entries]


def _as_list(value) -> List:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def entry_from_json(item) -> Dict:
    """Map one element of the catalog's JSON list onto a raw entry"""
    if not isinstance(item, dict):
        return {"title": None, "_raw": item}

    title = item.get("title")
    version = item.get("version")
    if title and version:
        title = f"{title} [{version}]"

    creators = item.get("creators")
    if creators is None:
        creators = item.get("creator")

    previews = item.get("previews")
    if previews is None:
        previews = item.get("screens")

    return {
        "id": item.get("thread_id", item.get("id")),
        "link": item.get("link") or item.get("url"),
        "title": title,
        "creators": _as_list(creators),
        "cover": item.get("cover"),
        "previews": _as_list(previews),
        "tags": _as_list(item.get("tags")),
        "prefixes": _as_list(item.get("prefixes")),
    }


def _feed_cover(entry) -> Optional[str]:
    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            if media.get("url"):
                return media["url"]
    for enclosure in entry.get("enclosures") or []:
        if enclosure.get("type", "").startswith("image/") and enclosure.get("href"):
            return enclosure["href"]
    image = entry.get("image")
    if isinstance(image, dict) and image.get("href"):
        return image["href"]
    match = _IMG_SRC.search(entry.get("summary") or "")
    return match.group(1) if match else None


def entry_from_feed(entry) -> Dict:
    """Map one feedparser entry onto a raw entry"""
    creators = [author["name"] for author in entry.get("authors") or [] if author.get("name")]
    if not creators and entry.get("author"):
        creators = [entry["author"]]

    return {
        "id": None,
        "link": entry.get("link"),
        "title": entry.get("title"),
        "creators": creators,
        "cover": _feed_cover(entry),
        "previews": [],
        "tags": [],
        "prefixes": [],
    }
