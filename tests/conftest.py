"""Shared pytest fixtures for trendscout tests."""

import sys
import tempfile
from pathlib import Path
from typing import Dict, Generator
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir) -> Dict:
    """Sample configuration for testing."""
    return {
        "youtube_api_key": "test_youtube_key",
        "use_proxy": False,
        "proxy_list": [],
        "min_request_delay": 1000,
        "max_request_delay": 3000,
        "headless": True,
        "navigation_timeout_ms": 30000,
        "scroll_time_limit": 120.0,
        "session_file": str(temp_dir / "session.json"),
        "log_level": "INFO",
    }


def make_api_item(
    video_id: str,
    channel_id: str = "UC_channel_1",
    views: int = 500_000,
    likes: int = 20_000,
    comments: int = 1_000,
    duration: str = "PT10M5S",
    title: str = None,
) -> dict:
    """Build one videos.list item as returned by the YouTube Data API."""
    return {
        "id": video_id,
        "snippet": {
            "title": title or f"Video {video_id}",
            "description": f"Description of {video_id}",
            "channelId": channel_id,
            "channelTitle": f"Channel {channel_id}",
            "publishedAt": "2024-03-01T12:00:00Z",
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
            "tags": ["python", "tutorial"],
            "defaultAudioLanguage": "en",
        },
        "statistics": {
            "viewCount": str(views),
            "likeCount": str(likes),
            "commentCount": str(comments),
        },
        "contentDetails": {"duration": duration},
    }


@pytest.fixture
def api_item_factory():
    """Factory for raw videos.list items."""
    return make_api_item


@pytest.fixture
def fake_youtube():
    """Mock googleapiclient YouTube resource.

    Configure responses through
    ``fake_youtube.search.return_value.list.return_value.execute`` and the
    equivalent ``videos`` / ``channels`` chains.
    """
    youtube = MagicMock()
    youtube.search.return_value.list.return_value.execute.return_value = {"items": []}
    youtube.videos.return_value.list.return_value.execute.return_value = {"items": []}
    youtube.channels.return_value.list.return_value.execute.return_value = {"items": []}
    return youtube


@pytest.fixture
def no_wait_limiter():
    """Rate limiter stand-in that never sleeps."""
    limiter = Mock()
    limiter.before_request = AsyncMock()
    limiter.request_count = 0
    return limiter


@pytest.fixture
def search_results_html() -> str:
    """Trimmed copy of a rendered YouTube search results page."""
    return """
<html><body><ytd-app><div id="contents">
<ytd-video-renderer class="style-scope ytd-item-section-renderer">
  <div id="dismissible">
    <ytd-thumbnail>
      <a id="thumbnail" href="/watch?v=abc123DEF45">
        <img src="https://i.ytimg.com/vi/abc123DEF45/hq720.jpg">
        <ytd-thumbnail-overlay-time-status-renderer>
          <span id="text" class="style-scope ytd-thumbnail-overlay-time-status-renderer"> 12:34 </span>
        </ytd-thumbnail-overlay-time-status-renderer>
      </a>
    </ytd-thumbnail>
    <div id="meta">
      <a id="video-title" href="/watch?v=abc123DEF45&amp;pp=ygUPcHl0aG9u" title="Python Tutorial for Beginners">
        Python Tutorial for Beginners
      </a>
      <div id="metadata-line"><span class="inline-metadata-item">1.2M views</span><span class="inline-metadata-item">2 years ago</span></div>
      <ytd-channel-name><a href="/@CodeAcademy">Code Academy</a></ytd-channel-name>
    </div>
  </div>
</ytd-video-renderer>
<ytd-video-renderer class="style-scope ytd-item-section-renderer">
  <div id="dismissible">
    <ytd-thumbnail>
      <a id="thumbnail" href="/watch?v=xyz987UVW65">
        <img src="https://i.ytimg.com/vi/xyz987UVW65/hq720.jpg">
        <ytd-thumbnail-overlay-time-status-renderer>
          <span id="text" class="style-scope ytd-thumbnail-overlay-time-status-renderer">1:02:03</span>
        </ytd-thumbnail-overlay-time-status-renderer>
      </a>
    </ytd-thumbnail>
    <div id="meta">
      <a id="video-title" href="/watch?v=xyz987UVW65">Full Python Course</a>
      <div id="metadata-line"><span class="inline-metadata-item">850 views</span><span class="inline-metadata-item">3 days ago</span></div>
      <div id="channel-name"><a href="/channel/UC123abc">Slow Coder</a></div>
    </div>
  </div>
</ytd-video-renderer>
<ytd-reel-item-renderer>
  <a class="reel-item-endpoint" href="/shorts/shrt0000001" title="Quick Python trick">
    <img src="https://i.ytimg.com/vi/shrt0000001/frame0.jpg">
    <span id="text" class="reel-item-duration">0:45</span>
    <div class="reel-item-metadata"><span>3.4K views</span></div>
  </a>
</ytd-reel-item-renderer>
<ytd-video-renderer class="style-scope ytd-item-section-renderer">
  <div id="dismissible"><div id="meta"><span>Sponsored</span></div></div>
</ytd-video-renderer>
<ytd-video-renderer class="style-scope ytd-item-section-renderer">
  <div id="meta">
    <a id="video-title" href="/watch?v=abc123DEF45" title="Python Tutorial for Beginners">Python Tutorial for Beginners</a>
  </div>
</ytd-video-renderer>
</div></ytd-app></body></html>
"""
