"""Team statistics cache stored on the team row.

The snapshot is considered stale when it was never computed, when it was
computed for an earlier season, or when any FINAL game starts after
``cached_at`` (a proxy for "a game completed since we last computed").
Ties count as losses; there is no draw bucket.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import StatsConfig, settings
from ..db import SessionScope, get_session
from ..errors import NotFound
from ..logging import logger
from ..models.schemas import UNKNOWN_FRANCHISE_ID, TeamStatsResult
from ..models.tables import Game, GameStatus, Team
from ..persistence.teams import find_team
from ..utils.date_utils import season_id_for
from ..utils.datetime_utils import now_utc


@dataclass
class _Record:
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    total_goals: int = 0

    def add(self, own_score: int, opponent_score: int) -> None:
        self.games_played += 1
        self.total_goals += own_score
        if own_score > opponent_score:
            self.wins += 1
        else:
            self.losses += 1


def is_cache_stale(session: Session, team: Team) -> bool:
    if team.cached_at is None:
        return True
    stmt = (
        select(Game.id)
        .where(Game.status == GameStatus.final.value)
        .where(Game.start_time > team.cached_at)
        .limit(1)
    )
    return session.execute(stmt).first() is not None


def _recent_final_games(session: Session, franchise_column, franchise_id: int, limit: int) -> list[Game]:
    stmt = (
        select(Game)
        .where(franchise_column == franchise_id)
        .where(Game.status == GameStatus.final.value)
        .order_by(Game.start_time.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).scalars().all())


def _all_final_games(session: Session, franchise_column, franchise_id: int) -> list[Game]:
    stmt = (
        select(Game)
        .where(franchise_column == franchise_id)
        .where(Game.status == GameStatus.final.value)
    )
    return list(session.execute(stmt).scalars().all())


def _snapshot(team: Team, source: str) -> TeamStatsResult:
    return TeamStatsResult(
        abbreviation=team.abbreviation,
        franchise_id=team.franchise_id,
        team_name=team.display_name,
        season=team.season or "",
        season_games_played=team.season_games_played,
        season_wins=team.season_wins,
        season_losses=team.season_losses,
        season_total_goals=team.season_total_goals,
        games_played=team.games_played,
        wins=team.wins,
        losses=team.losses,
        total_goals=team.total_goals,
        recent_games=list(team.recent_game_ids or []),
        cached_at=team.cached_at,
        source=source,
    )


class TeamStatsService:
    def __init__(
        self,
        session_scope: SessionScope = get_session,
        *,
        config: StatsConfig | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.session_scope = session_scope
        self.config = config or settings.stats_config
        self._clock = clock

    def get_team_stats(self, abbreviation: str) -> TeamStatsResult:
        with self.session_scope() as session:
            team = find_team(session, abbreviation)
            if team is None:
                raise NotFound(f"Team {abbreviation} not found")
            if team.franchise_id is None or team.franchise_id == UNKNOWN_FRANCHISE_ID:
                raise NotFound(f"Team {abbreviation} has no valid franchise id")

            current_season = season_id_for(self._clock().date())
            if team.season == current_season and not is_cache_stale(session, team):
                logger.debug("team_stats_cache_hit", abbreviation=abbreviation)
                return _snapshot(team, "cache")

            self._recompute(session, team)
            return _snapshot(team, "api")

    def _recompute(self, session: Session, team: Team) -> None:
        franchise_id = team.franchise_id
        now = self._clock()
        limit = self.config.recent_games_limit

        # No single equality filter spans both sides, so home and away are queried separately
        recent = _recent_final_games(session, Game.home_franchise_id, franchise_id, limit)
        recent += _recent_final_games(session, Game.away_franchise_id, franchise_id, limit)
        recent.sort(key=lambda g: g.start_time, reverse=True)

        season = season_id_for(now.date())
        all_time = _Record()
        current = _Record()

        for game in _all_final_games(session, Game.home_franchise_id, franchise_id):
            self._tally(game, game.home_score, game.away_score, season, all_time, current)
        for game in _all_final_games(session, Game.away_franchise_id, franchise_id):
            self._tally(game, game.away_score, game.home_score, season, all_time, current)

        team.recent_game_ids = [g.id for g in recent[:limit]]
        team.season = season
        team.season_games_played = current.games_played
        team.season_wins = current.wins
        team.season_losses = current.losses
        team.season_total_goals = current.total_goals
        team.games_played = all_time.games_played
        team.wins = all_time.wins
        team.losses = all_time.losses
        team.total_goals = all_time.total_goals
        team.cached_at = now

        logger.info(
            "team_stats_recomputed",
            abbreviation=team.abbreviation,
            franchise_id=franchise_id,
            season=season,
            games_played=all_time.games_played,
            wins=all_time.wins,
            losses=all_time.losses,
            total_goals=all_time.total_goals,
        )

    @staticmethod
    def _tally(
        game: Game,
        own: int | None,
        opponent: int | None,
        season: str,
        all_time: _Record,
        current: _Record,
    ) -> None:
        own_score = own or 0
        opponent_score = opponent or 0
        all_time.add(own_score, opponent_score)
        if season_id_for(game.start_time.date()) == season:
            current.add(own_score, opponent_score)
