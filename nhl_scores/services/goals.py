"""Goal extraction from play-by-play.

Goals are derived once per game and stored on the game row; a non-empty
stored map is treated as immutable and returned without an upstream call.
"""

from __future__ import annotations

from typing import Any

from ..db import SessionScope, get_session
from ..errors import NotFound
from ..live.nhl import NHLFeedClient
from ..live.nhl_constants import NHL_GOAL_EVENT, NHL_PERIOD_MINUTES
from ..logging import logger
from ..models.schemas import GoalRecord, GoalsResult
from ..models.tables import Game
from ..utils.parsing import clock_to_seconds, localized_default, parse_clock, parse_int

UNKNOWN_PLAYER = "Unknown"


def build_roster_names(roster_spots: list[dict[str, Any]]) -> dict[int, str | None]:
    """Map player id → "F. Lastname"; None when either name part is missing."""
    names: dict[int, str | None] = {}
    for spot in roster_spots:
        player_id = parse_int(spot.get("playerId"))
        if player_id is None:
            continue
        first = localized_default(spot.get("firstName"))
        last = localized_default(spot.get("lastName"))
        names[player_id] = f"{first[0]}. {last}" if first and last else None
    return names


def resolve_player(names: dict[int, str | None], player_id: Any) -> str | None:
    """None for an absent id; "Unknown" for an id the roster can't name."""
    pid = parse_int(player_id)
    if pid is None:
        return None
    return names.get(pid) or UNKNOWN_PLAYER


def cumulative_time(period: int, time_in_period: str) -> str:
    """Game clock across periods, assuming every period lasts 20:00."""
    minutes, seconds = parse_clock(time_in_period)
    total_minutes = (period - 1) * NHL_PERIOD_MINUTES + minutes
    return f"{total_minutes:02d}:{seconds:02d}"


def _period_of(play: dict[str, Any]) -> int:
    period = parse_int((play.get("periodDescriptor") or {}).get("number"))
    return period if period and period >= 1 else 1


def goal_key(period: int, time_in_period: str, taken: set[str]) -> str:
    """``P<period>-<MM:SS>``; a second goal at the identical clock gets a ``-2`` suffix."""
    key = f"P{period}-{time_in_period}"
    if key not in taken:
        return key
    suffix = 2
    while f"{key}-{suffix}" in taken:
        suffix += 1
    return f"{key}-{suffix}"


def extract_goals_from_pbp(payload: dict[str, Any]) -> dict[str, GoalRecord]:
    """Build the ordered goals map from a play-by-play payload.

    Which side scored is decided by the running score carried on each goal
    play, compared with the previous goal's, since some shapes omit the
    owning team.
    """
    plays = payload.get("plays") or []
    goal_plays = [p for p in plays if p.get("typeDescKey") == NHL_GOAL_EVENT]
    goal_plays.sort(key=lambda p: (_period_of(p), clock_to_seconds(p.get("timeInPeriod"))))

    names = build_roster_names(payload.get("rosterSpots") or [])
    goals: dict[str, GoalRecord] = {}
    prev_home = 0

    for play in goal_plays:
        details = play.get("details") or {}
        period = _period_of(play)
        time_in_period = play.get("timeInPeriod") or "00:00"

        home_score = parse_int(details.get("homeScore")) or 0
        scored_by_home = home_score > prev_home
        prev_home = home_score

        key = goal_key(period, time_in_period, set(goals))
        goals[key] = GoalRecord(
            scorer=resolve_player(names, details.get("scoringPlayerId")) or UNKNOWN_PLAYER,
            goalie=resolve_player(names, details.get("goalieInNetId")) or UNKNOWN_PLAYER,
            primary_assist=resolve_player(names, details.get("assist1PlayerId")),
            secondary_assist=resolve_player(names, details.get("assist2PlayerId")),
            period=period,
            time_in_period=time_in_period,
            cumulative_time=cumulative_time(period, time_in_period),
            scored_by_home=scored_by_home,
        )

    return goals


def _stored_goals(document: dict[str, Any]) -> dict[str, GoalRecord]:
    # JSONB does not keep key order
    records = {key: GoalRecord.model_validate(value) for key, value in document.items()}
    ordered = sorted(
        records.items(),
        key=lambda item: (item[1].period, clock_to_seconds(item[1].time_in_period), item[0]),
    )
    return dict(ordered)


class GoalExtractionService:
    def __init__(self, client: NHLFeedClient, session_scope: SessionScope = get_session) -> None:
        self.client = client
        self.session_scope = session_scope

    def extract_goals(self, game_id: str) -> GoalsResult:
        with self.session_scope() as session:
            game = session.get(Game, game_id)
            if game is None:
                raise NotFound(f"Game {game_id} not found")
            if game.goals:
                return GoalsResult(game_id=game_id, goals=_stored_goals(game.goals), source="database")

        payload = self.client.fetch_play_by_play(game_id)
        goals = extract_goals_from_pbp(payload)

        with self.session_scope() as session:
            game = session.get(Game, game_id)
            if game is None:
                raise NotFound(f"Game {game_id} not found")
            game.goals = {key: goal.model_dump() for key, goal in goals.items()}

        logger.info("goals_extracted", game_id=game_id, count=len(goals))
        return GoalsResult(game_id=game_id, goals=goals, source="api")
