"""Unit tests for fixture_etl.normalize."""

from datetime import date, datetime

import pytest

from fixture_etl.normalize import (
    format_fixture_date,
    normalize_headers,
    parse_fixture_date,
    parse_round_number,
    trim,
)


# ---------------------------------------------------------------------------
# trim
# ---------------------------------------------------------------------------

class TestTrim:
    def test_strips_whitespace(self):
        assert trim("  Lions  ") == "Lions"

    def test_empty_string_returns_none(self):
        assert trim("") is None

    def test_whitespace_only_returns_none(self):
        assert trim("   ") is None

    def test_none_returns_none(self):
        assert trim(None) is None


# ---------------------------------------------------------------------------
# parse_fixture_date
# ---------------------------------------------------------------------------

class TestParseFixtureDate:
    def test_valid(self):
        assert parse_fixture_date("15/06/2025") == date(2025, 6, 15)

    def test_trims(self):
        assert parse_fixture_date("  15/06/2025 ") == date(2025, 6, 15)

    def test_leap_day(self):
        assert parse_fixture_date("29/02/2024") == date(2024, 2, 29)

    @pytest.mark.parametrize("raw", [
        "2025-06-15",
        "15-06-2025",
        "5/6/2025",
        "15/06/25",
        "31/02/2025",
        "29/02/2025",
        "15/13/2025",
        "tomorrow",
        "",
        None,
    ])
    def test_rejected(self, raw):
        assert parse_fixture_date(raw) is None

    def test_date_passthrough(self):
        assert parse_fixture_date(date(2025, 6, 15)) == date(2025, 6, 15)

    def test_datetime_reduced_to_date(self):
        assert parse_fixture_date(datetime(2025, 6, 15, 14, 30)) == date(2025, 6, 15)

    def test_format_round_trips_layout(self):
        assert format_fixture_date(date(2025, 6, 5)) == "05/06/2025"


# ---------------------------------------------------------------------------
# parse_round_number
# ---------------------------------------------------------------------------

class TestParseRoundNumber:
    def test_int(self):
        assert parse_round_number(3) == 3

    def test_digit_string(self):
        assert parse_round_number(" 12 ") == 12

    @pytest.mark.parametrize("raw", [0, -1, "0", "-2", "1.5", "abc", "", None, True])
    def test_rejected(self, raw):
        assert parse_round_number(raw) is None


# ---------------------------------------------------------------------------
# normalize_headers
# ---------------------------------------------------------------------------

class TestNormalizeHeaders:
    def test_strips_keys(self):
        assert normalize_headers({" Grade Code ": "U12"}) == {"Grade Code": "U12"}

    def test_drops_overflow_key(self):
        assert normalize_headers({"Round": "1", None: ["extra"]}) == {"Round": "1"}
