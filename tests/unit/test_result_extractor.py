"""Unit tests for search results page extraction."""

from unittest.mock import patch

import pytest

from services import result_extractor
from services.result_extractor import (
    channel_id_from_href,
    extract_result_items,
    video_id_from_href,
)


class TestHrefParsing:
    """Tests for link parsing helpers."""

    @pytest.mark.parametrize(
        "href,expected",
        [
            ("/watch?v=abc123DEF45", "abc123DEF45"),
            ("/watch?v=abc123DEF45&pp=ygUGcHl0aG9u", "abc123DEF45"),
            ("https://www.youtube.com/watch?v=abc-_12", "abc-_12"),
            ("/shorts/shrt0000001", "shrt0000001"),
            ("/shorts/shrt-000_01?feature=share", "shrt-000_01"),
        ],
    )
    def test_video_id(self, href, expected):
        assert video_id_from_href(href) == expected

    @pytest.mark.parametrize("href", ["", None, "/channel/UC1", "/playlist?list=PL1"])
    def test_no_video_id(self, href):
        assert video_id_from_href(href) is None

    @pytest.mark.parametrize(
        "href,expected",
        [
            ("/@CodeAcademy", "CodeAcademy"),
            ("/channel/UC123abc", "UC123abc"),
            ("/c/SomeName", "SomeName"),
            ("/user/legacy", "legacy"),
            ("", ""),
        ],
    )
    def test_channel_id(self, href, expected):
        assert channel_id_from_href(href) == expected


class TestExtractResultItems:
    """Tests for whole-page extraction."""

    def test_extracts_videos_in_page_order(self, search_results_html):
        items = extract_result_items(search_results_html, max_results=50)

        assert [i["video_id"] for i in items] == ["abc123DEF45", "xyz987UVW65", "shrt0000001"]

    def test_regular_video_fields(self, search_results_html):
        first = extract_result_items(search_results_html, max_results=50)[0]

        assert first["title"] == "Python Tutorial for Beginners"
        assert first["channel_title"] == "Code Academy"
        assert first["channel_id"] == "CodeAcademy"
        assert first["thumbnail_url"] == "https://i.ytimg.com/vi/abc123DEF45/hq720.jpg"
        assert first["view_count_text"] == "1.2M views"
        assert first["published_text"] == "2 years ago"
        assert first["duration_text"] == "12:34"
        assert first["is_shorts"] is False

    def test_title_falls_back_to_link_text(self, search_results_html):
        second = extract_result_items(search_results_html, max_results=50)[1]

        assert second["title"] == "Full Python Course"
        assert second["channel_id"] == "UC123abc"
        assert second["channel_title"] == "Slow Coder"
        assert second["duration_text"] == "1:02:03"

    def test_shorts_classified_by_renderer(self, search_results_html):
        short = extract_result_items(search_results_html, max_results=50)[2]

        assert short["is_shorts"] is True
        assert short["title"] == "Quick Python trick"
        assert short["view_count_text"] == "3.4K views"
        assert short["duration_text"] == "0:45"
        assert short["channel_title"] == ""

    def test_scans_at_most_max_results_renderers(self, search_results_html):
        items = extract_result_items(search_results_html, max_results=2)
        assert [i["video_id"] for i in items] == ["abc123DEF45", "xyz987UVW65"]

    def test_missing_view_count_defaults_to_zero_text(self):
        html = """
        <ytd-video-renderer>
          <a id="video-title" href="/watch?v=noviews0001" title="Upcoming premiere"></a>
        </ytd-video-renderer>
        """
        items = extract_result_items(html, max_results=10)
        assert items[0]["view_count_text"] == "0"
        assert items[0]["published_text"] == ""

    def test_live_item_has_no_published_text(self):
        html = """
        <ytd-video-renderer>
          <a id="video-title" href="/watch?v=live0000001" title="Live now"></a>
          <div id="metadata-line"><span class="inline-metadata-item">1.2K watching</span></div>
        </ytd-video-renderer>
        """
        items = extract_result_items(html, max_results=10)
        assert items[0]["view_count_text"] == "1.2K watching"
        assert items[0]["published_text"] == ""

    def test_failing_item_is_skipped(self, search_results_html):
        real_extract = result_extractor.extract_item
        calls = []

        def flaky(element):
            calls.append(element)
            if len(calls) == 1:
                raise AttributeError("unexpected markup")
            return real_extract(element)

        with patch("services.result_extractor.extract_item", side_effect=flaky):
            items = extract_result_items(search_results_html, max_results=50)

        assert [i["video_id"] for i in items] == ["xyz987UVW65", "shrt0000001", "abc123DEF45"]

    def test_empty_page(self):
        assert extract_result_items("<html><body></body></html>", max_results=20) == []
