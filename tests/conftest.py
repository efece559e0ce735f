"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

import pytest

# Set required environment variables before any imports
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("ENVIRONMENT", "development")

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from nhl_scores.db import make_session_scope
from nhl_scores.errors import NotFound
from nhl_scores.models.tables import Base, Game, GameStatus, Team


class FakeFeedClient:
    """In-memory stand-in for NHLFeedClient that records every call."""

    def __init__(
        self,
        *,
        teams: list[dict[str, Any]] | None = None,
        season_games: dict[str, list[dict[str, Any]]] | None = None,
        schedule: list[dict[str, Any]] | None = None,
        scores_for_date: list[dict[str, Any]] | None = None,
        current_scores: list[dict[str, Any]] | None = None,
        pbp: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.teams = teams or []
        self.season_games = season_games or {}
        self.schedule = schedule or []
        self.scores_for_date = scores_for_date or []
        self.current_scores = current_scores or []
        self.pbp = pbp or {}
        self.calls: list[str] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def fetch_teams(self) -> list[dict[str, Any]]:
        self.calls.append("teams")
        return list(self.teams)

    def fetch_season_games(self, season: str) -> list[dict[str, Any]]:
        self.calls.append(f"season:{season}")
        return list(self.season_games.get(season, []))

    def fetch_schedule(self, day) -> list[dict[str, Any]]:
        self.calls.append(f"schedule:{day.isoformat()}")
        return list(self.schedule)

    def fetch_scores_for_date(self, day) -> list[dict[str, Any]]:
        self.calls.append(f"scores:{day.isoformat()}")
        return list(self.scores_for_date)

    def fetch_current_scores(self) -> list[dict[str, Any]]:
        self.calls.append("current_scores")
        return list(self.current_scores)

    def fetch_play_by_play(self, game_id: str) -> dict[str, Any]:
        self.calls.append(f"pbp:{game_id}")
        if game_id not in self.pbp:
            raise NotFound(f"no play-by-play for {game_id}")
        return self.pbp[game_id]


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_scope(engine):
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=Session)
    return make_session_scope(factory)


@pytest.fixture
def fake_client():
    return FakeFeedClient()


@pytest.fixture
def sample_teams():
    """Stats-feed team rows (numeric ids, franchise ids, tri-codes)."""
    return [
        {"id": 10, "franchiseId": 5, "fullName": "Toronto Maple Leafs", "triCode": "TOR"},
        {"id": 8, "franchiseId": 1, "fullName": "Montréal Canadiens", "triCode": "MTL"},
        {"id": 6, "franchiseId": 6, "fullName": "Boston Bruins", "triCode": "BOS"},
    ]


@pytest.fixture
def sample_schedule():
    """Two schedule-feed games that have already started."""
    return [
        {
            "id": 2024020001,
            "startTimeUTC": "2024-10-15T23:00:00Z",
            "gameState": "OFF",
            "homeTeam": {"abbrev": "TOR", "commonName": {"default": "Maple Leafs"}},
            "awayTeam": {"abbrev": "MTL", "commonName": {"default": "Canadiens"}},
        },
        {
            "id": 2024020002,
            "startTimeUTC": "2024-10-15T23:30:00Z",
            "gameState": "LIVE",
            "homeTeam": {"abbrev": "BOS", "commonName": {"default": "Bruins"}},
            "awayTeam": {"abbrev": "TOR", "commonName": {"default": "Maple Leafs"}},
        },
    ]


@pytest.fixture
def sample_scores():
    return [
        {"id": 2024020001, "homeTeam": {"score": 3}, "awayTeam": {"score": 2}},
        {"id": 2024020002, "homeTeam": {"score": 1}, "awayTeam": {"score": 1}},
    ]


@pytest.fixture
def sample_nhl_goal_play():
    """Sample NHL goal play for testing."""
    return {
        "eventId": 151,
        "periodDescriptor": {"number": 1, "periodType": "REG"},
        "timeInPeriod": "04:00",
        "typeDescKey": "goal",
        "details": {
            "scoringPlayerId": 8479318,
            "assist1PlayerId": 8478483,
            "goalieInNetId": 8471679,
            "homeScore": 1,
            "awayScore": 0,
        },
    }


def make_game(
    game_id: str,
    *,
    start_time: datetime,
    status: str = GameStatus.final.value,
    home: tuple[str, int, int] = ("TOR", 5, 0),
    away: tuple[str, int, int] = ("MTL", 1, 0),
    **fields: Any,
) -> Game:
    """Build a game row; ``home``/``away`` are (abbreviation, franchise id, score)."""
    return Game(
        id=game_id,
        start_time=start_time,
        status=status,
        home_abbreviation=home[0],
        home_name=home[0],
        home_franchise_id=home[1],
        home_score=home[2],
        away_abbreviation=away[0],
        away_name=away[0],
        away_franchise_id=away[1],
        away_score=away[2],
        locked=fields.pop("locked", False),
        goals=fields.pop("goals", {}),
        raw=fields.pop("raw", {}),
        **fields,
    )


def make_team(abbreviation: str, franchise_id: int | None, name: str | None = None, **fields: Any) -> Team:
    return Team(
        abbreviation=abbreviation,
        display_name=name or abbreviation,
        franchise_id=franchise_id,
        recent_game_ids=fields.pop("recent_game_ids", []),
        **fields,
    )


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
