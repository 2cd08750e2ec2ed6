"""Result filtering shared by both acquisition paths.

Filters applied to every record, conjunctively:
- Minimum view count (separate floor for Shorts, falling back to the regular one)
- Video type (all / regular videos only / Shorts only)
- Popularity: (likes + comments) / views must exceed 1% when enabled

Filtering is a post-condition of a search, not a hint: every record an engine
returns has passed should_keep().
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from models.video import SearchParams, VideoRecord, VideoType

logger = logging.getLogger(__name__)

POPULAR_ENGAGEMENT_THRESHOLD = 0.01


@dataclass
class FilterStats:
    """Statistics from filtering a batch of videos."""

    total_input: int = 0
    total_passed: int = 0
    total_filtered: int = 0
    reasons: dict[str, int] = field(default_factory=dict)

    @property
    def filter_rate(self) -> float:
        """Return the percentage of videos that were filtered out."""
        if self.total_input == 0:
            return 0.0
        return (self.total_filtered / self.total_input) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for reporting."""
        return {
            "total_input": self.total_input,
            "total_passed": self.total_passed,
            "total_filtered": self.total_filtered,
            "filter_rate_percent": round(self.filter_rate, 1),
            "reasons": dict(self.reasons),
        }

    def __str__(self) -> str:
        """Human-readable summary."""
        return (
            f"Filtered {self.total_filtered}/{self.total_input} videos "
            f"({self.filter_rate:.1f}%), {self.total_passed} passed"
        )


def view_count_floor(video: VideoRecord, params: SearchParams) -> int:
    """Minimum view count that applies to this video (0 means no floor)."""
    if video.is_shorts and params.min_view_count_shorts:
        return params.min_view_count_shorts
    return params.min_view_count or 0


def should_keep(video: VideoRecord, params: SearchParams) -> tuple[bool, str]:
    """
    Decide whether a video satisfies the active search filters.

    Args:
        video: Normalized video record
        params: Search parameters carrying the filter settings

    Returns:
        Tuple of (keep, reason):
        - keep: True if video passes all filters
        - reason: Human-readable explanation of the decision
    """
    floor = view_count_floor(video, params)
    if floor > 0 and video.view_count < floor:
        kind = "Shorts" if video.is_shorts else "video"
        return False, f"Low view count ({kind}): below {floor:,}"

    if params.video_type == VideoType.SHORTS and not video.is_shorts:
        return False, "Not a Short"
    if params.video_type == VideoType.VIDEO and video.is_shorts:
        return False, "Is a Short"

    if params.filter_popular and video.engagement_rate <= POPULAR_ENGAGEMENT_THRESHOLD:
        return False, "Engagement rate at or below 1%"

    return True, "Passed all filters"


def apply_filters(
    videos: list[VideoRecord],
    params: SearchParams,
    log_callback: Optional[Callable[[str], None]] = None,
) -> tuple[list[VideoRecord], FilterStats]:
    """
    Filter a list of videos against the search parameters.

    Args:
        videos: Normalized records from either acquisition path
        params: Search parameters carrying the filter settings
        log_callback: Optional callback for logging filtered videos

    Returns:
        Tuple of (filtered_videos, stats)
    """
    filtered = []
    stats = FilterStats(total_input=len(videos))

    for video in videos:
        keep, reason = should_keep(video, params)

        if keep:
            filtered.append(video)
            stats.total_passed += 1
        else:
            stats.total_filtered += 1
            stats.reasons[reason] = stats.reasons.get(reason, 0) + 1

            if log_callback:
                log_callback(f"Skipping '{video.title}': {reason}")
            else:
                logger.debug(f"Filter: Skipping '{video.title}': {reason}")

    if stats.total_filtered > 0:
        logger.info(f"Filter: {stats}")

    return filtered, stats
