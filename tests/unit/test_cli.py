"""Unit tests for the search CLI helpers."""

import argparse
from unittest.mock import AsyncMock, patch

import pytest

from cli.search import build_params, check_proxies, show_results
from models.video import SearchResult, VideoRecord, VideoSource, VideoType


def _args(**overrides) -> argparse.Namespace:
    values = dict(
        keyword="python tutorial",
        max_results=10,
        published_after=None,
        language="en",
        min_views=100_000,
        min_views_shorts=None,
        type="video",
        popular=True,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


class TestBuildParams:
    def test_maps_arguments(self):
        params = build_params(_args())

        assert params.keyword == "python tutorial"
        assert params.max_results == 10
        assert params.language == "en"
        assert params.min_view_count == 100_000
        assert params.video_type == VideoType.VIDEO
        assert params.filter_popular is True

    def test_blank_keyword_rejected(self):
        with pytest.raises(ValueError):
            build_params(_args(keyword="  "))


class TestCheckProxies:
    @pytest.mark.asyncio
    async def test_counts_healthy_proxies(self):
        with patch("cli.search.check_proxy", new_callable=AsyncMock) as mock_check:
            mock_check.side_effect = [True, False, True]
            healthy = await check_proxies(["http://p1:1", "http://p2:1", "http://p3:1"])

        assert healthy == 2
        assert mock_check.await_count == 3


class TestShowResults:
    def test_renders_both_sources(self):
        result = SearchResult(
            videos=[
                VideoRecord(
                    id="a",
                    title="API video",
                    channel_id="UC1",
                    channel_title="Channel",
                    published_at="2024-03-01T12:00:00Z",
                    view_count=1_000,
                    duration="1:00",
                    is_shorts=False,
                    source=VideoSource.API,
                    channel_subscriber_count=100,
                    subscribers_known=True,
                ),
                VideoRecord(
                    id="b",
                    title="Scraped short",
                    channel_id="",
                    channel_title="",
                    published_at="3 days ago",
                    view_count=3_400,
                    duration="0:45",
                    is_shorts=True,
                    source=VideoSource.BROWSER,
                ),
            ],
            total_results=2,
        )

        with patch("cli.search.console") as mock_console:
            show_results(result)

        mock_console.print.assert_called_once()
