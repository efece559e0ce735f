"""ORM models for the two persisted collections: teams and games."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ..utils.datetime_utils import ensure_utc, now_utc

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always round-trips as UTC.

    SQLite has no timezone support and hands back naive values; those are
    re-tagged as UTC on load so comparisons never mix naive and aware.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        value = ensure_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)


class Base(DeclarativeBase):
    pass


class GameStatus(str, Enum):
    """Canonical game status lifecycle.

    Happy path: SCHEDULED → PREGAME → LIVE → FINAL. FINAL is terminal.
    """

    scheduled = "SCHEDULED"
    pregame = "PREGAME"
    live = "LIVE"
    final = "FINAL"


def _generate_team_id() -> str:
    return uuid.uuid4().hex


class Team(Base):
    """Team reference row plus its cached statistics snapshot."""

    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_generate_team_id)
    abbreviation: Mapped[str] = mapped_column(String(10), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    franchise_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # Statistics cache, recomputable from games
    season: Mapped[str | None] = mapped_column(String(8), nullable=True)
    season_games_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    season_wins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    season_losses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    season_total_goals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    losses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_goals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    recent_game_ids: Mapped[list[str]] = mapped_column(JSONDocument, default=list, nullable=False)
    cached_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc, nullable=False)

    __table_args__ = (
        Index("idx_teams_abbreviation", "abbreviation"),
        Index("idx_teams_franchise_id", "franchise_id"),
    )


class Game(Base):
    """One game per external game id; home and away sides stored flat."""

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), default=GameStatus.scheduled.value, nullable=False
    )

    home_abbreviation: Mapped[str] = mapped_column(String(10), nullable=False)
    home_name: Mapped[str] = mapped_column(String(200), nullable=False)
    home_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    home_franchise_id: Mapped[int] = mapped_column(Integer, default=-1, nullable=False)
    away_abbreviation: Mapped[str] = mapped_column(String(10), nullable=False)
    away_name: Mapped[str] = mapped_column(String(200), nullable=False)
    away_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    away_franchise_id: Mapped[int] = mapped_column(Integer, default=-1, nullable=False)

    last_refreshed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    locked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    goals: Mapped[dict[str, Any]] = mapped_column(JSONDocument, default=dict, nullable=False)
    raw: Mapped[dict[str, Any]] = mapped_column(JSONDocument, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=now_utc, onupdate=now_utc, nullable=False
    )

    __table_args__ = (
        Index("idx_games_status_start_time", "status", "start_time"),
        Index("idx_games_home_franchise", "home_franchise_id", "status", "start_time"),
        Index("idx_games_away_franchise", "away_franchise_id", "status", "start_time"),
    )
