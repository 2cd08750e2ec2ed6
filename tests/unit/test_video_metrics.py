"""Unit tests for derived metrics."""

from datetime import datetime, timezone

import pytest

from models.video import VideoRecord, VideoSource
from services.video_metrics import daily_growth, days_since_publish, format_number, per_subscriber


NOW = datetime(2024, 3, 11, 12, 0, tzinfo=timezone.utc)


def make_video(**overrides) -> VideoRecord:
    fields = dict(
        id="v",
        title="t",
        channel_id="UC1",
        channel_title="c",
        published_at="2024-03-01T12:00:00Z",
        view_count=100_000,
        like_count=5_000,
        comment_count=500,
        duration="10:00",
        is_shorts=False,
        source=VideoSource.API,
        channel_subscriber_count=50_000,
        subscribers_known=True,
    )
    fields.update(overrides)
    return VideoRecord(**fields)


class TestDaysSincePublish:
    def test_whole_days(self):
        assert days_since_publish("2024-03-01T12:00:00Z", NOW) == 10

    def test_at_least_one_day(self):
        assert days_since_publish("2024-03-11T11:00:00Z", NOW) == 1

    def test_relative_text_is_unknown(self):
        assert days_since_publish("3 days ago", NOW) is None


class TestDailyGrowth:
    def test_rates(self):
        growth = daily_growth(make_video(), NOW)
        assert growth.days == 10
        assert growth.views_per_day == pytest.approx(10_000)
        assert growth.likes_per_day == pytest.approx(500)
        assert growth.comments_per_day == pytest.approx(50)

    def test_browser_record_has_no_growth(self):
        assert daily_growth(make_video(published_at="2 years ago"), NOW) is None


class TestPerSubscriber:
    def test_ratios(self):
        ratios = per_subscriber(make_video())
        assert ratios.views_per_sub == pytest.approx(2.0)
        assert ratios.likes_per_sub == pytest.approx(0.1)
        assert ratios.comments_per_sub == pytest.approx(0.01)

    def test_unknown_subscribers(self):
        video = make_video(channel_subscriber_count=0, subscribers_known=False)
        assert per_subscriber(video) is None

    def test_known_zero_subscribers(self):
        assert per_subscriber(make_video(channel_subscriber_count=0)) is None


class TestFormatNumber:
    @pytest.mark.parametrize(
        "num,expected",
        [(1_234_567, "1.23M"), (1_500, "1.50K"), (12, "12.00"), (0.5, "0.50")],
    )
    def test_format(self, num, expected):
        assert format_number(num) == expected
