import pytest

from sitecache.formatting import (
    format_age,
    format_bytes,
    format_duration,
    format_number,
    format_percent,
)


class TestFormatBytes:
    @pytest.mark.parametrize(
        ("num_bytes", "expected"),
        [
            (0, "0 B"),
            (512, "512.00 B"),
            (1536, "1.50 KB"),
            (1024 * 1024, "1.00 MB"),
            (50 * 1024 * 1024, "50.00 MB"),
            (3 * 1024**3, "3.00 GB"),
        ],
    )
    def test_units(self, num_bytes, expected):
        assert format_bytes(num_bytes) == expected


class TestFormatPercent:
    def test_default_decimals(self):
        assert format_percent(0.756) == "75.6%"

    def test_custom_decimals(self):
        assert format_percent(1 / 3, decimals=2) == "33.33%"


def test_format_number():
    assert format_number(1234567) == "1,234,567"


class TestFormatDuration:
    def test_milliseconds(self):
        assert format_duration(0.25) == "250ms"

    def test_seconds(self):
        assert format_duration(12.34) == "12.3s"

    def test_minutes(self):
        assert format_duration(95) == "1m 35s"

    def test_hours(self):
        assert format_duration(3 * 3600 + 120) == "3h 2m"


class TestFormatAge:
    def test_never(self):
        assert format_age(None, 1000.0) == "Never"

    def test_just_now(self):
        assert format_age(990.0, 1000.0) == "Just now"

    def test_minutes(self):
        assert format_age(0.0, 60.0) == "1 minute ago"
        assert format_age(0.0, 300.0) == "5 minutes ago"

    def test_hours(self):
        assert format_age(0.0, 7200.0) == "2 hours ago"

    def test_days(self):
        assert format_age(0.0, 86400.0) == "1 day ago"
