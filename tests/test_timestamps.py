"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

from task_notifier.utils.timestamps import (
    ensure_utc,
    format_timestamp,
    parse_timestamp,
    utc_now,
)


class TestUtcNow:
    def test_utc_now_returns_aware_utc_datetime(self):
        now = utc_now()

        assert isinstance(now, datetime)
        assert now.tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    def test_none_passes_through(self):
        assert ensure_utc(None) is None

    def test_naive_datetime_is_treated_as_utc(self):
        result = ensure_utc(datetime(2025, 11, 4, 12, 0, 0))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_other_timezone_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2025, 11, 4, 14, 0, 0, tzinfo=plus_two))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestFormatTimestamp:
    def test_format_without_microseconds(self):
        dt = datetime(2025, 11, 4, 12, 30, 45, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2025-11-04T12:30:45Z"

    def test_format_with_microseconds(self):
        dt = datetime(2025, 11, 4, 12, 30, 45, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt, include_microseconds=True) == "2025-11-04T12:30:45.123456Z"

    def test_naive_datetime_formats_as_utc(self):
        assert format_timestamp(datetime(2025, 11, 4, 12, 0)) == "2025-11-04T12:00:00Z"


class TestParseTimestamp:
    def test_parse_empty_returns_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_parse_z_suffix(self):
        result = parse_timestamp("2025-11-04T12:00:00Z")

        assert result == datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)

    def test_parse_restores_formatted_value(self):
        dt = datetime(2025, 11, 4, 12, 30, 45, 123456, tzinfo=timezone.utc)

        assert parse_timestamp(format_timestamp(dt, include_microseconds=True)) == dt
