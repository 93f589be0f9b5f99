"""Tests for time utilities."""

from datetime import date, datetime, timedelta, timezone

import pytest

from fluentrecords.utils.time import parse_timestamp, to_utc_z, utc_now_z


def test_utc_now_z_ends_with_z():
    """Test that utc_now_z() ends with Z and never with +00:00Z."""
    result = utc_now_z()
    assert result.endswith("Z")
    assert "+00:00Z" not in result


def test_to_utc_z_raises_on_naive_datetime():
    """Test that to_utc_z() raises ValueError for naive datetime."""
    with pytest.raises(ValueError, match="Naive datetime not allowed"):
        to_utc_z(datetime(2024, 1, 5, 10, 0))


def test_to_utc_z_converts_non_utc_timezone():
    """Test that to_utc_z() converts other offsets to UTC."""
    est = timezone(timedelta(hours=-5))
    result = to_utc_z(datetime(2025, 12, 23, 12, 0, 0, tzinfo=est))

    assert result == "2025-12-23T17:00:00Z"


@pytest.mark.parametrize(
    "value",
    [
        "2024-01-05T10:30:00Z",
        "2024-01-05T10:30:00+00:00",
        "2024-01-05 10:30:00",
        "05.01.2024 10:30:00",
        datetime(2024, 1, 5, 10, 30),
        datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc),
    ],
)
def test_parse_timestamp_formats(value):
    """Test the accepted timestamp spellings."""
    assert parse_timestamp(value) == datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc)


def test_parse_timestamp_dates_and_empty_values():
    """Test date-only inputs and empty values."""
    midnight = datetime(2024, 1, 5, tzinfo=timezone.utc)

    assert parse_timestamp("05.01.2024") == midnight
    assert parse_timestamp(date(2024, 1, 5)) == midnight
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_parse_timestamp_rejects_garbage():
    """Test that unknown formats raise ValueError."""
    with pytest.raises(ValueError, match="Unrecognized timestamp"):
        parse_timestamp("next tuesday")
