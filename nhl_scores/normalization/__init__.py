"""Normalization of upstream game payloads into the canonical game shape.

Both upstream variants are resolved once, at the boundary, by their own pure
mapper. Nothing downstream branches on which feed a game came from.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from ..config import settings
from ..live.nhl_constants import NHL_GAME_STATE_ID_MAP, NHL_GAME_STATE_MAP
from ..models.schemas import (
    UNKNOWN_FRANCHISE_ID,
    BulkGameEvent,
    BulkTeam,
    CanonicalGame,
    GameSide,
    ScheduleGameEvent,
)
from ..models.tables import GameStatus
from ..utils.datetime_utils import parse_utc_datetime
from ..utils.parsing import parse_int

_UNKNOWN_TEAM = BulkTeam(full_name="Unknown", tri_code="UNK")


def map_game_state_id(state_id: int | None) -> str:
    """Map the stats feed's numeric gameStateId; unmapped codes are SCHEDULED."""
    if state_id is None:
        return GameStatus.scheduled.value
    return NHL_GAME_STATE_ID_MAP.get(state_id, GameStatus.scheduled.value)


def map_game_state(state: str | None) -> str:
    """Map the web feed's gameState (FUT, PRE, LIVE, CRIT, OFF, FINAL)."""
    if not state:
        return GameStatus.scheduled.value
    return NHL_GAME_STATE_MAP.get(state.strip().upper(), GameStatus.scheduled.value)


def _franchise_or_unknown(franchise_id: int | None) -> int:
    if franchise_id is None or franchise_id == 0:
        return UNKNOWN_FRANCHISE_ID
    return franchise_id


def _resolve_start_time(value: str | None, raw: Mapping[str, Any], tz_name: str | None) -> datetime:
    start = parse_utc_datetime(value, tz_name)
    if start is None:
        # Fall back to the calendar date some payloads carry alongside the time
        start = parse_utc_datetime(raw.get("gameDate"), tz_name)
    if start is None:
        raise ValueError(f"game {raw.get('id')} has no parseable start time")
    return start


def build_team_lookup(teams: Iterable[Mapping[str, Any]]) -> dict[int, BulkTeam]:
    """Index the stats team feed by numeric team id."""
    lookup: dict[int, BulkTeam] = {}
    for payload in teams:
        team = BulkTeam.from_payload(dict(payload))
        if team.team_id is not None:
            lookup[team.team_id] = team
    return lookup


def index_scores_by_game(games: Iterable[Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    """Index a scores feed by game id (as string)."""
    return {str(g["id"]): dict(g) for g in games if g.get("id") is not None}


def game_from_bulk(event: BulkGameEvent, team_lookup: Mapping[int, BulkTeam]) -> CanonicalGame:
    """Map a stats-feed game; scores and status are embedded in the event."""
    home = team_lookup.get(event.home_team_id) if event.home_team_id is not None else None
    away = team_lookup.get(event.visiting_team_id) if event.visiting_team_id is not None else None
    home = home or _UNKNOWN_TEAM
    away = away or _UNKNOWN_TEAM

    return CanonicalGame(
        game_id=event.game_id,
        # easternStartTime carries no offset; it is US Eastern wall time
        start_time=_resolve_start_time(
            event.eastern_start_time, event.raw, settings.ingest_config.timezone
        ),
        status=map_game_state_id(event.game_state_id),
        home=GameSide(
            abbreviation=home.tri_code or "UNK",
            name=home.full_name,
            score=event.home_score or 0,
            franchise_id=_franchise_or_unknown(home.franchise_id),
        ),
        away=GameSide(
            abbreviation=away.tri_code or "UNK",
            name=away.full_name,
            score=event.visiting_score or 0,
            franchise_id=_franchise_or_unknown(away.franchise_id),
        ),
        raw=event.raw,
    )


def game_from_schedule(
    event: ScheduleGameEvent,
    live_scores: Mapping[str, Mapping[str, Any]],
    franchise_ids: Mapping[str, int],
) -> CanonicalGame:
    """Map a daily-schedule game.

    Scores come from the separate scores-for-date feed, matched by game id
    (0 when the game is not listed); franchise ids come from the team
    registry, keyed by abbreviation.
    """
    scored = live_scores.get(event.game_id) or {}
    home_score = parse_int((scored.get("homeTeam") or {}).get("score")) or 0
    away_score = parse_int((scored.get("awayTeam") or {}).get("score")) or 0

    home_abbr = event.home_team.abbreviation
    away_abbr = event.away_team.abbreviation

    return CanonicalGame(
        game_id=event.game_id,
        start_time=_resolve_start_time(event.start_time_utc, event.raw, None),
        status=map_game_state(event.game_state),
        home=GameSide(
            abbreviation=home_abbr,
            name=event.home_team.name,
            score=home_score,
            franchise_id=franchise_ids.get(home_abbr, UNKNOWN_FRANCHISE_ID),
        ),
        away=GameSide(
            abbreviation=away_abbr,
            name=event.away_team.name,
            score=away_score,
            franchise_id=franchise_ids.get(away_abbr, UNKNOWN_FRANCHISE_ID),
        ),
        raw=event.raw,
    )
