"""Extraction of raw video fields from a rendered YouTube search results page.

Every assumption about YouTube's markup lives in this module. The extractor is
a pure function of the page HTML, so it can be exercised against saved pages
without a browser. When YouTube changes its layout, this is the only file that
should need updating.
"""

import logging
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

VIDEO_RENDERER = "ytd-video-renderer"
SHORTS_RENDERER = "ytd-reel-item-renderer"

ITEM_SELECTOR = f"{VIDEO_RENDERER}, {SHORTS_RENDERER}"
LINK_SELECTOR = "a#video-title, a.reel-item-endpoint"
CHANNEL_SELECTOR = "ytd-channel-name a, #channel-name a"
VIEW_COUNT_SELECTOR = "#metadata-line span:first-child, .reel-item-metadata span"
PUBLISHED_SELECTOR = "#metadata-line span:nth-of-type(2)"
DURATION_SELECTOR = (
    "span.ytd-thumbnail-overlay-time-status-renderer, span#text.reel-item-duration"
)

_SHORTS_PATH_RE = re.compile(r"^/shorts/([\w-]+)")
_CHANNEL_PREFIX_RE = re.compile(r"^/(?:@|channel/|c/|user/)")


def video_id_from_href(href: str) -> Optional[str]:
    """Get the video ID from a "/watch?v=ID" or "/shorts/ID" link."""
    if not href:
        return None

    parsed = urlparse(href)
    shorts_match = _SHORTS_PATH_RE.match(parsed.path)
    if shorts_match:
        return shorts_match.group(1)

    video_ids = parse_qs(parsed.query).get("v")
    return video_ids[0] if video_ids else None


def channel_id_from_href(href: str) -> str:
    """Strip the "/@", "/channel/", "/c/" or "/user/" prefix from a channel link."""
    path = urlparse(href).path if href else ""
    return _CHANNEL_PREFIX_RE.sub("", path).strip("/")


def _text(element: Optional[Tag]) -> str:
    return element.get_text(strip=True) if element else ""


def extract_item(element: Tag) -> Optional[dict]:
    """Extract raw fields from one result renderer.

    Returns:
        Dict of raw fields, or None if the item has no recognizable video link
    """
    link = element.select_one(LINK_SELECTOR)
    video_id = video_id_from_href(link.get("href", "")) if link else None
    if not video_id:
        return None

    channel = element.select_one(CHANNEL_SELECTOR)
    thumbnail = element.select_one("img")

    return {
        "video_id": video_id,
        "title": (link.get("title") or _text(link)).strip(),
        "channel_title": _text(channel),
        "channel_id": channel_id_from_href(channel.get("href", "")) if channel else "",
        "thumbnail_url": thumbnail.get("src", "") if thumbnail else "",
        "view_count_text": _text(element.select_one(VIEW_COUNT_SELECTOR)) or "0",
        "published_text": _text(element.select_one(PUBLISHED_SELECTOR)),
        "duration_text": _text(element.select_one(DURATION_SELECTOR)),
        # Classification comes from the renderer type, not from the duration
        "is_shorts": element.name == SHORTS_RENDERER,
    }


def extract_result_items(html: str, max_results: int) -> list[dict]:
    """Extract raw video fields from a rendered search results page.

    Scans at most ``max_results`` renderers in page order. A malformed item is
    logged and skipped; it never fails the page. Duplicate video IDs keep their
    first occurrence.

    Args:
        html: Page HTML after scrolling
        max_results: Maximum number of result renderers to scan

    Returns:
        List of raw field dicts for video_normalizer.from_scraped_fields
    """
    soup = BeautifulSoup(html, "html.parser")
    elements = soup.select(ITEM_SELECTOR)
    logger.info(f"Found {len(elements)} result renderers on page")

    results = []
    seen_ids = set()
    for index, element in enumerate(elements[:max_results]):
        try:
            raw = extract_item(element)
        except Exception as e:
            logger.warning(f"Failed to extract result item #{index}: {e}")
            continue

        if raw is None:
            logger.debug(f"Result item #{index} has no video link, skipped")
            continue
        if raw["video_id"] in seen_ids:
            continue

        seen_ids.add(raw["video_id"])
        results.append(raw)

    logger.info(f"Extracted {len(results)} videos")
    return results
