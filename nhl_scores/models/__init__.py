"""Typed models shared across the pipeline."""

from .schemas import (
    UNKNOWN_FRANCHISE_ID,
    BulkGameEvent,
    BulkTeam,
    CanonicalGame,
    GameEvent,
    GameSide,
    GoalRecord,
    GoalsResult,
    IngestSummary,
    RefreshResult,
    ScheduleGameEvent,
    ScheduleTeam,
    Source,
    TeamStatsResult,
    TeamSyncSummary,
    parse_game_event,
)
from .tables import Base, Game, GameStatus, Team

__all__ = [
    "UNKNOWN_FRANCHISE_ID",
    "Base",
    "BulkGameEvent",
    "BulkTeam",
    "CanonicalGame",
    "Game",
    "GameEvent",
    "GameSide",
    "GameStatus",
    "GoalRecord",
    "GoalsResult",
    "IngestSummary",
    "RefreshResult",
    "ScheduleGameEvent",
    "ScheduleTeam",
    "Source",
    "Team",
    "TeamStatsResult",
    "TeamSyncSummary",
    "parse_game_event",
]
