"""Pydantic models for feed inputs, canonical games and operation results."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from ..utils.parsing import localized_default, parse_int

Source = Literal["database", "cache", "api"]

UNKNOWN_FRANCHISE_ID = -1


# ---------------------------------------------------------------------------
# Upstream shapes
# ---------------------------------------------------------------------------
class BulkTeam(BaseModel):
    """A franchise row from the stats team feed."""

    team_id: int | None = None
    franchise_id: int | None = None
    full_name: str = "Unknown"
    tri_code: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BulkTeam:
        tri_code = payload.get("triCode")
        return cls(
            team_id=parse_int(payload.get("id")),
            franchise_id=parse_int(payload.get("franchiseId")),
            full_name=payload.get("fullName") or "Unknown",
            tri_code=tri_code if isinstance(tri_code, str) and tri_code else None,
        )


def _upstream_payload(data: Any) -> dict[str, Any] | None:
    """The feed payload when ``data`` is untransformed upstream JSON, else None."""
    if isinstance(data, dict) and "game_id" not in data:
        return {key: value for key, value in data.items() if key != "kind"}
    return None


class BulkGameEvent(BaseModel):
    """Game from the stats game feed: numeric team ids, embedded score and state."""

    kind: Literal["bulk"] = "bulk"
    game_id: str
    eastern_start_time: str | None = None
    game_state_id: int | None = None
    home_team_id: int | None = None
    visiting_team_id: int | None = None
    home_score: int | None = None
    visiting_score: int | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _map_upstream(cls, data: Any) -> Any:
        payload = _upstream_payload(data)
        if payload is None:
            return data
        return {
            "kind": "bulk",
            "game_id": str(payload["id"]) if payload.get("id") is not None else None,
            "eastern_start_time": payload.get("easternStartTime"),
            "game_state_id": parse_int(payload.get("gameStateId")),
            "home_team_id": parse_int(payload.get("homeTeamId")),
            "visiting_team_id": parse_int(payload.get("visitingTeamId")),
            "home_score": parse_int(payload.get("homeScore")),
            "visiting_score": parse_int(payload.get("visitingScore")),
            "raw": payload,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BulkGameEvent:
        return cls.model_validate(payload)


class ScheduleTeam(BaseModel):
    abbreviation: str = "UNK"
    name: str = "Unknown"

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> ScheduleTeam:
        payload = payload or {}
        return cls(
            abbreviation=payload.get("abbrev") or "UNK",
            name=localized_default(payload.get("commonName"), "Unknown") or "Unknown",
        )


class ScheduleGameEvent(BaseModel):
    """Game from the daily schedule feed: abbreviation-keyed teams, no reliable score."""

    kind: Literal["schedule"] = "schedule"
    game_id: str
    start_time_utc: str | None = None
    game_state: str | None = None
    home_team: ScheduleTeam = Field(default_factory=ScheduleTeam)
    away_team: ScheduleTeam = Field(default_factory=ScheduleTeam)
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _map_upstream(cls, data: Any) -> Any:
        payload = _upstream_payload(data)
        if payload is None:
            return data
        return {
            "kind": "schedule",
            "game_id": str(payload["id"]) if payload.get("id") is not None else None,
            "start_time_utc": payload.get("startTimeUTC"),
            "game_state": payload.get("gameState"),
            "home_team": ScheduleTeam.from_payload(payload.get("homeTeam")),
            "away_team": ScheduleTeam.from_payload(payload.get("awayTeam")),
            "raw": payload,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ScheduleGameEvent:
        return cls.model_validate(payload)


GameEvent = Annotated[Union[BulkGameEvent, ScheduleGameEvent], Field(discriminator="kind")]
GameEventKind = Literal["bulk", "schedule"]

_game_event_adapter: TypeAdapter[GameEvent] = TypeAdapter(GameEvent)


def parse_game_event(kind: GameEventKind, payload: dict[str, Any]) -> GameEvent:
    """Resolve a raw feed game into its shape; ``kind`` names the feed it came from."""
    return _game_event_adapter.validate_python({**payload, "kind": kind})


# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------
class GameSide(BaseModel):
    abbreviation: str
    name: str
    score: int = 0
    franchise_id: int = UNKNOWN_FRANCHISE_ID


class CanonicalGame(BaseModel):
    """The one game shape both upstream variants normalize into."""

    game_id: str
    start_time: datetime
    status: str
    home: GameSide
    away: GameSide
    raw: dict[str, Any] = Field(default_factory=dict)


class GoalRecord(BaseModel):
    scorer: str
    goalie: str
    primary_assist: str | None = None
    secondary_assist: str | None = None
    period: int = Field(ge=1)
    time_in_period: str
    cumulative_time: str
    scored_by_home: bool


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------
class TeamSyncSummary(BaseModel):
    teams_found: int = 0
    teams_created: int = 0
    source: Source = "api"


class IngestSummary(BaseModel):
    date_range: str
    games_found: int = 0
    games_created: int = 0
    games_updated: int = 0
    games_skipped: int = 0
    games_failed: int = 0
    source: Source = "api"


class RefreshResult(BaseModel):
    game_id: str
    home_score: int
    away_score: int
    status: str
    source: Source


class GoalsResult(BaseModel):
    game_id: str
    goals: dict[str, GoalRecord]
    source: Source


class TeamStatsResult(BaseModel):
    abbreviation: str
    franchise_id: int
    team_name: str
    season: str
    season_games_played: int = 0
    season_wins: int = 0
    season_losses: int = 0
    season_total_goals: int = 0
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    total_goals: int = 0
    recent_games: list[str] = Field(default_factory=list)
    cached_at: datetime | None = None
    source: Source
