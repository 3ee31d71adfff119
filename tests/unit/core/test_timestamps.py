# tests/unit/core/test_timestamps.py
"""Tests for lenient timestamp parsing and elapsed-time computation."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from workflow_telemetry.core.timestamps import elapsed_ms, parse_timestamp


class TestParseTimestamp:
    """parse_timestamp never raises and always returns UTC."""

    def test_zulu_suffix(self) -> None:
        assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_offset_converted_to_utc(self) -> None:
        parsed = parse_timestamp("2024-05-01T14:00:00+02:00")
        assert parsed == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        assert parsed is not None and parsed.utcoffset() == timedelta(0)

    def test_naive_assumed_utc(self) -> None:
        assert parse_timestamp("2024-05-01T12:00:00") == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_fractional_seconds(self) -> None:
        parsed = parse_timestamp("2024-05-01T12:00:00.250Z")
        assert parsed == datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "   ", "not-a-date", "2024-13-45T99:00:00Z", 1714564800])
    def test_unparseable_is_none(self, value: object) -> None:
        assert parse_timestamp(value) is None  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00"])
    def test_offset_outside_datetime_range_is_none(self, value: str) -> None:
        assert parse_timestamp(value) is None

    def test_datetime_passes_through(self) -> None:
        aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))
        assert parse_timestamp(aware) is aware

    def test_naive_datetime_gets_utc(self) -> None:
        assert parse_timestamp(datetime(2024, 5, 1, 12, 0)) == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class TestElapsedMs:
    def test_positive_span(self) -> None:
        start = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
        assert elapsed_ms(start, start + timedelta(seconds=1, milliseconds=500)) == 1500

    def test_negative_span_clamped_to_zero(self) -> None:
        start = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
        assert elapsed_ms(start, start - timedelta(seconds=5)) == 0

    @pytest.mark.parametrize(
        ("started", "completed"),
        [(None, datetime(2024, 5, 1, tzinfo=UTC)), (datetime(2024, 5, 1, tzinfo=UTC), None), (None, None)],
    )
    def test_missing_end_is_zero(self, started: datetime | None, completed: datetime | None) -> None:
        assert elapsed_ms(started, completed) == 0


class TestLogTimestampPrecision:
    def test_seven_fractional_digits_truncated(self) -> None:
        parsed = parse_timestamp("2024-05-01T12:00:00.1234567Z")
        assert parsed == datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=UTC)
