from datetime import datetime, timezone

import pytest

from mio_dashboard.formatting import (
    completion_style,
    completion_tier,
    format_number,
    format_percentage,
    format_relative_time,
    parse_timestamp,
    pluralize,
)

NOW = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value,expected", [
    (0, "0%"),
    (49.4, "49%"),
    (87.5, "88%"),
    (0.5, "1%"),
    (100, "100%"),
])
def test_format_percentage_rounds_half_up(value, expected):
    assert format_percentage(value) == expected


def test_format_number_uses_thousands_separators():
    assert format_number(1234567) == "1,234,567"
    assert format_number(12.5) == "12.5"
    assert format_number(3.0) == "3"


@pytest.mark.parametrize("percentage,tier", [
    (100, "success"),
    (90, "success"),
    (89.9, "info"),
    (70, "info"),
    (69.9, "warning"),
    (50, "warning"),
    (49.9, "danger"),
    (0, "danger"),
])
def test_completion_tier_thresholds(percentage, tier):
    assert completion_tier(percentage) == tier


def test_completion_style_maps_tiers_to_colours():
    assert completion_style(95) == "green"
    assert completion_style(10) == "red"


class TestRelativeTime:

    def test_recent_values(self):
        assert format_relative_time("2024-05-10T11:59:30Z", NOW) == "just now"
        assert format_relative_time("2024-05-10T11:55:00Z", NOW) == "5m ago"
        assert format_relative_time("2024-05-10T09:00:00Z", NOW) == "3h ago"
        assert format_relative_time("2024-05-08T12:00:00Z", NOW) == "2d ago"

    def test_older_values_show_the_date(self):
        assert format_relative_time("2024-04-01T08:00:00Z", NOW) == "2024-04-01"

    def test_naive_timestamps_are_utc(self):
        assert parse_timestamp("2024-05-10T12:00:00") == NOW

    def test_unparseable_value_is_returned_as_is(self):
        assert format_relative_time("yesterday", NOW) == "yesterday"
        assert format_relative_time("", NOW) == ""


def test_pluralize():
    assert pluralize(1, "key") == "1 key"
    assert pluralize(0, "key") == "0 keys"
    assert pluralize(2, "entry", "entries") == "2 entries"
