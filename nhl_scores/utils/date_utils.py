"""
Season calculation utilities.

Operates on ``date`` objects only; time-of-day and timezone handling lives
in datetime_utils.py.
"""

from __future__ import annotations

from datetime import date

# First month of a new season (October)
SEASON_START_MONTH = 10


def season_start_year(day: date) -> int:
    """Return the calendar year a season containing ``day`` started in.

    October through December belong to the season starting that year;
    January through September belong to the season that started the
    previous October.
    """
    return day.year if day.month >= SEASON_START_MONTH else day.year - 1


def season_id_for(day: date) -> str:
    """Return the 8-digit season identifier for a date (e.g. "20242025")."""
    start = season_start_year(day)
    return f"{start}{start + 1}"


def season_ids_between(first_start_year: int, last_start_year: int) -> list[str]:
    """Season identifiers for every season starting in the inclusive year range."""
    return [f"{year}{year + 1}" for year in range(first_start_year, last_start_year + 1)]
