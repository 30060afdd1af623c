"""RSS 2.0 and sitemap rendering."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from xml.etree import ElementTree as ET

RSS_DESCRIPTION_LENGTH = 250
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass(frozen=True)
class FeedItem:
    title: str
    url: str
    guid: str
    description: str
    published_at: datetime | None = None


@dataclass(frozen=True)
class SitemapUrl:
    loc: str
    lastmod: datetime | None = None


def summarize(content: str, length: int = RSS_DESCRIPTION_LENGTH) -> str:
    return content[:length]


def _serialize(root: ET.Element) -> str:
    ET.indent(root)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode")


def render_rss(
    items: Iterable[FeedItem],
    *,
    title: str,
    description: str,
    site_url: str,
    language: str = "en",
) -> str:
    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = title
    ET.SubElement(channel, "description").text = description
    ET.SubElement(channel, "link").text = site_url
    ET.SubElement(channel, "language").text = language

    for item in items:
        node = ET.SubElement(channel, "item")
        ET.SubElement(node, "title").text = item.title
        ET.SubElement(node, "description").text = item.description
        ET.SubElement(node, "link").text = item.url
        ET.SubElement(node, "guid", isPermaLink="false").text = item.guid
        if item.published_at is not None:
            ET.SubElement(node, "pubDate").text = format_datetime(item.published_at)
    return _serialize(rss)


def render_sitemap(urls: Iterable[SitemapUrl]) -> str:
    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
    for url in urls:
        node = ET.SubElement(urlset, "url")
        ET.SubElement(node, "loc").text = url.loc
        if url.lastmod is not None:
            ET.SubElement(node, "lastmod").text = url.lastmod.isoformat()
    return _serialize(urlset)
