"""Tests for the scheduled sync time reported by the API."""

from datetime import datetime, timedelta, timezone

from haven.presentation.api.routers.sync import next_daily_sync


class TestNextDailySync:
    def test_before_six_is_same_day(self):
        now = datetime(2026, 10, 19, 5, 59, tzinfo=timezone.utc)

        assert next_daily_sync(now) == datetime(
            2026, 10, 19, 6, 0, tzinfo=timezone.utc
        )

    def test_at_six_is_next_day(self):
        now = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)

        assert next_daily_sync(now) == datetime(
            2026, 10, 20, 6, 0, tzinfo=timezone.utc
        )

    def test_after_six_is_next_day(self):
        now = datetime(2026, 12, 31, 18, 30, tzinfo=timezone.utc)

        assert next_daily_sync(now) == datetime(2027, 1, 1, 6, 0, tzinfo=timezone.utc)

    def test_other_timezone_is_converted(self):
        # 07:30 in UTC+02:00 is 05:30 UTC
        now = datetime(2026, 10, 19, 7, 30, tzinfo=timezone(timedelta(hours=2)))

        result = next_daily_sync(now)

        assert result == datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc
