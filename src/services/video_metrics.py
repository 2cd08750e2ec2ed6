"""Derived insight metrics for result tables.

Per-subscriber metrics need a trustworthy subscriber count. Browser records
and API records whose channel stats failed carry ``subscribers_known=False``,
and those get None instead of a number computed against a placeholder.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from models.video import VideoRecord


@dataclass
class DailyGrowth:
    """Average views/likes/comments per day since publishing."""

    days: int
    views_per_day: float
    likes_per_day: float
    comments_per_day: float


@dataclass
class PerSubscriber:
    """Views/likes/comments per channel subscriber."""

    views_per_sub: float
    likes_per_sub: float
    comments_per_sub: float


def days_since_publish(published_at: str, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days since publishing, at least 1.

    Returns:
        Day count, or None when published_at is not a timestamp (browser
        records carry relative text such as "3 days ago")
    """
    try:
        published = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None

    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max((now - published).days, 1)


def daily_growth(video: VideoRecord, now: Optional[datetime] = None) -> Optional[DailyGrowth]:
    days = days_since_publish(video.published_at, now)
    if days is None:
        return None
    return DailyGrowth(
        days=days,
        views_per_day=video.view_count / days,
        likes_per_day=video.like_count / days,
        comments_per_day=video.comment_count / days,
    )


def per_subscriber(video: VideoRecord) -> Optional[PerSubscriber]:
    """Per-subscriber ratios, or None when the subscriber count is unknown or zero."""
    if not video.subscribers_known or video.channel_subscriber_count <= 0:
        return None

    subscribers = video.channel_subscriber_count
    return PerSubscriber(
        views_per_sub=video.view_count / subscribers,
        likes_per_sub=video.like_count / subscribers,
        comments_per_sub=video.comment_count / subscribers,
    )


def format_number(num: float) -> str:
    """Compact display: 1234567 -> "1.23M", 1500 -> "1.50K", 12 -> "12.00"."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.2f}M"
    if num >= 1_000:
        return f"{num / 1_000:.2f}K"
    return f"{num:.2f}"
