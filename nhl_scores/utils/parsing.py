"""
Generic, format-agnostic parsing utilities.

Upstream payloads are mapped defensively: every helper here returns a
fallback rather than raising on malformed input.
"""

from __future__ import annotations

from typing import Any


def parse_int(value: str | int | float | None) -> int | None:
    """Parse a value to an integer, handling common edge cases.

    Accepts strings, ints, floats, or None. Returns None for empty strings or "-".
    """
    if value in (None, "", "-"):
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def parse_clock(value: str | None) -> tuple[int, int]:
    """Parse an "MM:SS" clock into (minutes, seconds); (0, 0) when malformed."""
    if not value:
        return 0, 0
    parts = str(value).split(":")
    if len(parts) != 2:
        return 0, 0
    minutes = parse_int(parts[0])
    seconds = parse_int(parts[1])
    if minutes is None or seconds is None:
        return 0, 0
    return minutes, seconds


def clock_to_seconds(value: str | None) -> int:
    """Convert an "MM:SS" clock to total seconds."""
    minutes, seconds = parse_clock(value)
    return minutes * 60 + seconds


def localized_default(value: Any, fallback: str = "") -> str:
    """Read the ``default`` entry of an NHL localized-string object.

    The web API wraps names as ``{"default": "Maple Leafs", "fr": ...}``;
    plain strings are passed through.
    """
    if isinstance(value, dict):
        text = value.get("default")
        return text if isinstance(text, str) else fallback
    if isinstance(value, str):
        return value
    return fallback
