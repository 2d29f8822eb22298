"""
Feed projection: allow-listed ids + stored games -> ordered RSS items.
"""

import html
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from typing import Dict, Iterable, List, Optional
from xml.etree import ElementTree as ET

import structlog

from f95rss.constants import CHANNEL_DESCRIPTION, CHANNEL_LINK, CHANNEL_TITLE, THREAD_BASE_URL
from f95rss.normalizer import format_title
from f95rss.utils import to_local

logger = structlog.get_logger("feed")


@dataclass(frozen=True)
class Channel:
    title: str = CHANNEL_TITLE
    link: str = CHANNEL_LINK
    description: str = CHANNEL_DESCRIPTION

    @classmethod
    def from_settings(cls, settings) -> "Channel":
        feed = settings["feed"]
        return cls(title=feed["title"], link=feed["link"], description=feed["description"])


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    description: str
    pub_date: datetime


def permalink(base_url: str, game_id: int) -> str:
    return f"{base_url.rstrip('/')}/{game_id}"


def cover_html(url: Optional[str], alt: str) -> str:
    """Embedded cover image, or an empty string when there is no cover"""
    if not url:
        return ""
    return f'<img src="{html.escape(url, quote=True)}" alt="{html.escape(alt, quote=True)}" />'


class FeedProjector:
    """Read-only join of an ordered id list against the store"""

    def __init__(self, store, base_url: str = THREAD_BASE_URL):
        self.store = store
        self.base_url = base_url

    def to_item(self, view) -> FeedItem:
        return FeedItem(
            title=format_title(view.title, view.version),
            link=permalink(self.base_url, view.id),
            description=cover_html(view.cover_url, view.title),
            pub_date=to_local(view.updated_at),
        )

    def build_feed(self, allowed_ids: Iterable[int]) -> List[FeedItem]:
        """
        One item per allowed id, in input order. Ids with no stored game are
        left out; repeated ids produce repeated items.
        """
        views: Dict[int, object] = {}
        items = []
        missing = 0
        for game_id in allowed_ids:
            if game_id not in views:
                views[game_id] = self.store.get_game_by_id(game_id)
            view = views[game_id]
            if view is None:
                missing += 1
                continue
            items.append(self.to_item(view))

        if missing:
            logger.debug("Allow-listed ids not in store", missing=missing)
        return items


def render_rss(items: Iterable[FeedItem], channel: Channel = None) -> bytes:
    """Serialize items as an RSS 2.0 document"""
    channel = channel or Channel()

    rss = ET.Element("rss", version="2.0")
    chan = ET.SubElement(rss, "channel")
    ET.SubElement(chan, "title").text = channel.title
    ET.SubElement(chan, "link").text = channel.link
    ET.SubElement(chan, "description").text = channel.description

    for item in items:
        node = ET.SubElement(chan, "item")
        ET.SubElement(node, "title").text = item.title
        ET.SubElement(node, "link").text = item.link
        ET.SubElement(node, "description").text = item.description
        ET.SubElement(node, "pubDate").text = format_datetime(item.pub_date)

    ET.indent(rss, space="  ")
    return ET.tostring(rss, encoding="utf-8", xml_declaration=True)
