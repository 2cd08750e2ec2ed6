"""Normalization of raw API payloads and scraped fields into VideoRecord.

Pure functions only. Everything that depends on YouTube's response or markup
shape ends up here or in result_extractor, never in the engines.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from models.video import VideoRecord, VideoSource

logger = logging.getLogger(__name__)

SHORTS_MAX_SECONDS = 60

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_VIEW_COUNT_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([KMB]?)", re.IGNORECASE)

_UNIT_MULTIPLIERS = {
    "": 1,
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


def parse_duration(duration: str) -> int:
    """Parse ISO 8601 duration to seconds.

    Args:
        duration: Duration string like "PT5M30S" or "PT1H2M3S"

    Returns:
        Duration in seconds, 0 when nothing could be parsed
    """
    if not duration:
        return 0

    match = _DURATION_RE.search(duration)
    if not match:
        return 0

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)
    return hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: int) -> str:
    """Render seconds as "H:MM:SS" when there are hours, else "M:SS"."""
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_view_count(text: Optional[str]) -> int:
    """Parse display text such as "1.2K views" or "3.4M" into an integer.

    Returns:
        Floored view count, 0 for empty or unparseable text
    """
    if not text:
        return 0

    match = _VIEW_COUNT_RE.search(text)
    if not match:
        return 0

    try:
        mantissa = Decimal(match.group(1).replace(",", ""))
    except InvalidOperation:
        return 0

    multiplier = _UNIT_MULTIPLIERS[match.group(2).upper()]
    return int(mantissa * multiplier)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def from_api_payload(
    item: dict,
    subscriber_count: int,
    subscribers_known: bool = True,
) -> VideoRecord:
    """Build a record from one videos.list item (snippet, statistics, contentDetails).

    Args:
        item: Raw item from the YouTube Data API
        subscriber_count: Subscriber count of the item's channel
        subscribers_known: False when channel stats could not be fetched

    Returns:
        VideoRecord tagged with the api source
    """
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    content = item.get("contentDetails") or {}
    thumbnails = snippet.get("thumbnails") or {}

    duration_seconds = parse_duration(content.get("duration") or "PT0S")
    thumbnail = thumbnails.get("high") or thumbnails.get("default") or {}

    return VideoRecord(
        id=item.get("id", ""),
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        channel_id=snippet.get("channelId", ""),
        channel_title=snippet.get("channelTitle", ""),
        channel_subscriber_count=subscriber_count,
        subscribers_known=subscribers_known,
        published_at=snippet.get("publishedAt", ""),
        thumbnail_url=thumbnail.get("url", ""),
        view_count=_to_int(stats.get("viewCount")),
        like_count=_to_int(stats.get("likeCount")),
        comment_count=_to_int(stats.get("commentCount")),
        duration=format_duration(duration_seconds),
        tags=list(snippet.get("tags") or []),
        is_shorts=duration_seconds <= SHORTS_MAX_SECONDS,
        language=snippet.get("defaultLanguage") or snippet.get("defaultAudioLanguage"),
        source=VideoSource.API,
    )


def from_scraped_fields(raw: dict) -> VideoRecord:
    """Build a record from fields extracted out of a rendered results page.

    Likes, comments, tags, description and subscriber counts are never
    available on the results page, so they stay at their empty defaults and the
    subscriber count is flagged as unknown.
    """
    return VideoRecord(
        id=raw["video_id"],
        title=raw.get("title", ""),
        channel_id=raw.get("channel_id", ""),
        channel_title=raw.get("channel_title", ""),
        published_at=raw.get("published_text", ""),
        thumbnail_url=raw.get("thumbnail_url", ""),
        view_count=parse_view_count(raw.get("view_count_text")),
        duration=raw.get("duration_text", ""),
        is_shorts=bool(raw.get("is_shorts")),
        source=VideoSource.BROWSER,
        subscribers_known=False,
    )
