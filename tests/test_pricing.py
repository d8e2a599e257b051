"""Tests for free-text price and duration parsing"""

import pytest

from bookify.domain.catalog.pricing import (
    format_duration,
    parse_duration_minutes,
    parse_price,
    total_minutes,
    total_price,
)


class TestParsePrice:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("₹1,234.50", 1234.50),
            ("500", 500.0),
            ("299.99 INR", 299.99),
            ("", 0.0),
            (None, 0.0),
            ("free", 0.0),
            ("1.2.3", 0.0),
        ],
    )
    def test_parse_price(self, raw, expected):
        assert parse_price(raw) == expected

    def test_total_price_rounds_to_cents(self):
        assert total_price(["₹500", "₹299.99"]) == 799.99


class TestDurations:
    @pytest.mark.parametrize(
        "raw, minutes",
        [
            ("1 hr", 60),
            ("45 mins", 45),
            ("1 hr 30 mins", 90),
            ("90", 90),
            ("1.5h", 90),
            ("2 hours", 120),
            ("2h30m", 150),
            ("1hr30mins", 90),
            ("1h 5m", 65),
            ("", 0),
            (None, 0),
            ("about an hour", 0),
        ],
    )
    def test_parse_duration_minutes(self, raw, minutes):
        assert parse_duration_minutes(raw) == minutes

    def test_hour_and_minutes_sum(self):
        assert format_duration(total_minutes(["1 hr", "45 mins"])) == "1 hr 45 mins"

    def test_minutes_roll_over_into_hours(self):
        assert format_duration(total_minutes(["90 mins"])) == "1 hr 30 mins"
        assert format_duration(total_minutes(["40 mins", "20 mins"])) == "1 hr"

    def test_nothing_selected_is_not_applicable(self):
        assert format_duration(0) == "N/A"
        assert format_duration(total_minutes([])) == "N/A"
