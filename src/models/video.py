"""Video-related data models.

Both acquisition paths (YouTube Data API and browser scraping) produce the same
VideoRecord shape so callers never need to know where a result came from.
The ``source`` field records it anyway, because a few values (subscriber
counts, likes, comments) are simply not available on the browser path.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class VideoType(str, Enum):
    """Classification filter for search requests."""

    ALL = "all"
    VIDEO = "video"
    SHORTS = "shorts"


class VideoSource(str, Enum):
    """Acquisition path that produced a record."""

    API = "api"
    BROWSER = "browser"


@dataclass(frozen=True)
class SearchParams:
    """Search request parameters. Immutable for the life of one request."""

    keyword: str
    max_results: int = 50
    published_after: Optional[str] = None  # ISO 8601 timestamp
    language: Optional[str] = None
    min_view_count: Optional[int] = None
    min_view_count_shorts: Optional[int] = None
    video_type: VideoType = VideoType.ALL
    filter_popular: bool = False

    def __post_init__(self):
        if not self.keyword or not self.keyword.strip():
            raise ValueError("keyword must not be empty")
        if self.max_results < 1:
            raise ValueError(f"max_results must be positive, got {self.max_results}")
        if not isinstance(self.video_type, VideoType):
            object.__setattr__(self, "video_type", VideoType(self.video_type))

    @classmethod
    def from_dict(cls, data: dict) -> "SearchParams":
        """Create params from a request body (camelCase keys)."""
        return cls(
            keyword=data.get("keyword", ""),
            max_results=int(data.get("maxResults", 50)),
            published_after=data.get("publishedAfter") or None,
            language=data.get("language") or None,
            min_view_count=data.get("minViewCount"),
            min_view_count_shorts=data.get("minViewCountShorts"),
            video_type=VideoType(data.get("videoType") or "all"),
            filter_popular=bool(data.get("filterPopular", False)),
        )


@dataclass
class VideoRecord:
    """Canonical video record emitted by every acquisition path."""

    id: str
    title: str
    channel_id: str
    channel_title: str
    published_at: str  # ISO timestamp (api) or relative text like "3 days ago" (browser)
    view_count: int
    duration: str  # "M:SS" / "H:MM:SS"
    is_shorts: bool
    source: VideoSource
    description: str = ""
    channel_subscriber_count: int = 0
    subscribers_known: bool = False
    thumbnail_url: str = ""
    like_count: int = 0
    comment_count: int = 0
    tags: list[str] = field(default_factory=list)
    language: Optional[str] = None

    @property
    def url(self) -> str:
        return WATCH_URL.format(video_id=self.id)

    @property
    def engagement_rate(self) -> float:
        """(likes + comments) / views, with views clamped to at least 1."""
        return (self.like_count + self.comment_count) / max(self.view_count, 1)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire shape used by exports and API responses."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "channelId": self.channel_id,
            "channelTitle": self.channel_title,
            "channelSubscriberCount": self.channel_subscriber_count,
            "publishedAt": self.published_at,
            "thumbnailUrl": self.thumbnail_url,
            "viewCount": self.view_count,
            "likeCount": self.like_count,
            "commentCount": self.comment_count,
            "duration": self.duration,
            "tags": list(self.tags),
            "isShorts": self.is_shorts,
            "language": self.language,
            "url": self.url,
            "source": self.source.value,
            "subscribersKnown": self.subscribers_known,
        }


@dataclass
class SearchResult:
    """Result of one acquisition call."""

    videos: list[VideoRecord] = field(default_factory=list)
    total_results: int = 0
    next_page_token: Optional[str] = None
    filter_stats: Optional[Any] = None  # services.video_filter.FilterStats

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        data = {
            "videos": [v.to_dict() for v in self.videos],
            "totalResults": self.total_results,
        }
        if self.next_page_token:
            data["nextPageToken"] = self.next_page_token
        if self.filter_stats is not None:
            data["filterStats"] = self.filter_stats.to_dict()
        return data
