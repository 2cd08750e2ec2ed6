"""Export a result set as JSON or CSV."""

import csv
import io
import json
import time
from typing import Optional

from models.video import VideoRecord

CSV_COLUMNS = [
    ("id", "Video ID"),
    ("title", "Title"),
    ("channel_title", "Channel"),
    ("channel_id", "Channel ID"),
    ("view_count", "Views"),
    ("like_count", "Likes"),
    ("comment_count", "Comments"),
    ("published_at", "Published"),
    ("duration", "Duration"),
    ("type", "Type"),
    ("language", "Language"),
    ("url", "URL"),
    ("tags", "Tags"),
]

EXPORT_FORMATS = {
    "json": "application/json",
    "csv": "text/csv",
}


def _require_videos(videos: list[VideoRecord]) -> None:
    if not videos:
        raise ValueError("No videos to export")


def export_json(videos: list[VideoRecord]) -> bytes:
    """Serialize videos as pretty-printed UTF-8 JSON."""
    _require_videos(videos)
    return json.dumps([v.to_dict() for v in videos], indent=2, ensure_ascii=False).encode("utf-8")


def _csv_row(video: VideoRecord) -> dict:
    return {
        "id": video.id,
        "title": video.title,
        "channel_title": video.channel_title,
        "channel_id": video.channel_id,
        "view_count": video.view_count,
        "like_count": video.like_count,
        "comment_count": video.comment_count,
        "published_at": video.published_at,
        "duration": video.duration,
        "type": "Shorts" if video.is_shorts else "Video",
        "language": video.language or "",
        "url": video.url,
        "tags": ", ".join(video.tags),
    }


def export_csv(videos: list[VideoRecord]) -> bytes:
    """Serialize videos as CSV with a header row.

    Encoded as UTF-8 with a BOM so spreadsheet apps detect the encoding.
    """
    _require_videos(videos)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=[key for key, _ in CSV_COLUMNS])
    writer.writerow({key: header for key, header in CSV_COLUMNS})
    for video in videos:
        writer.writerow(_csv_row(video))

    return buffer.getvalue().encode("utf-8-sig")


def export_videos(videos: list[VideoRecord], fmt: str) -> bytes:
    """Export videos in the given format ("json" or "csv")."""
    if fmt == "csv":
        return export_csv(videos)
    if fmt == "json":
        return export_json(videos)
    raise ValueError(f"Unsupported export format: {fmt}")


def export_filename(fmt: str, now_ms: Optional[int] = None) -> str:
    """Default download filename, e.g. "youtube-videos-1700000000000.json"."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"youtube-videos-{now_ms}.{fmt}"
