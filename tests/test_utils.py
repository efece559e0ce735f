"""Tests for utils: season calculation, datetime helpers and parsing."""

from __future__ import annotations

from datetime import date, datetime, timezone

from nhl_scores.utils.date_utils import season_id_for, season_ids_between, season_start_year
from nhl_scores.utils.datetime_utils import ensure_utc, parse_utc_datetime
from nhl_scores.utils.parsing import clock_to_seconds, localized_default, parse_clock, parse_int


class TestSeasonId:
    def test_september_belongs_to_previous_season(self):
        assert season_id_for(date(2024, 9, 30)) == "20232024"

    def test_october_starts_new_season(self):
        assert season_id_for(date(2024, 10, 1)) == "20242025"

    def test_spring_playoffs(self):
        assert season_id_for(date(2025, 6, 10)) == "20242025"

    def test_start_year(self):
        assert season_start_year(date(2025, 1, 5)) == 2024
        assert season_start_year(date(2024, 12, 31)) == 2024

    def test_ids_between_inclusive(self):
        assert season_ids_between(2022, 2024) == ["20222023", "20232024", "20242025"]

    def test_ids_between_empty_when_reversed(self):
        assert season_ids_between(2025, 2024) == []


class TestParseUtcDatetime:
    def test_trailing_z(self):
        result = parse_utc_datetime("2024-10-15T23:00:00Z")
        assert result == datetime(2024, 10, 15, 23, 0, tzinfo=timezone.utc)

    def test_naive_interpreted_in_timezone(self):
        # 7 PM Eastern daylight time is 23:00 UTC
        result = parse_utc_datetime("2024-10-15T19:00:00", "America/New_York")
        assert result == datetime(2024, 10, 15, 23, 0, tzinfo=timezone.utc)

    def test_naive_without_timezone_is_utc(self):
        result = parse_utc_datetime("2024-10-15T19:00:00")
        assert result.tzinfo == timezone.utc
        assert result.hour == 19

    def test_offset_converted(self):
        result = parse_utc_datetime("2024-01-15T19:30:00-05:00")
        assert result.hour == 0
        assert result.day == 16

    def test_garbage_returns_none(self):
        assert parse_utc_datetime("not a date") is None
        assert parse_utc_datetime(None) is None
        assert parse_utc_datetime("") is None

    def test_ensure_utc_attaches_tz(self):
        assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc


class TestParsing:
    def test_parse_int(self):
        assert parse_int("12") == 12
        assert parse_int(3.0) == 3
        assert parse_int("-") is None
        assert parse_int("") is None
        assert parse_int(None) is None
        assert parse_int("abc") is None

    def test_parse_clock(self):
        assert parse_clock("12:34") == (12, 34)
        assert parse_clock("bad") == (0, 0)
        assert parse_clock("1:2:3") == (0, 0)
        assert parse_clock(None) == (0, 0)

    def test_clock_to_seconds(self):
        assert clock_to_seconds("02:05") == 125
        assert clock_to_seconds(None) == 0

    def test_localized_default(self):
        assert localized_default({"default": "Maple Leafs", "fr": "Maple Leafs"}) == "Maple Leafs"
        assert localized_default("Bruins") == "Bruins"
        assert localized_default(None, "Unknown") == "Unknown"
        assert localized_default({"fr": "x"}, "Unknown") == "Unknown"
