"""The operations exposed to clients (UI backend, CLI, scheduled jobs).

Each result carries ``source``: "database" and "cache" answers cost no
upstream call, "api" answers did upstream work.
"""

from __future__ import annotations

from collections.abc import Callable

from .db import SessionScope, get_session
from .live.nhl import NHLFeedClient
from .models.schemas import (
    GoalsResult,
    IngestSummary,
    RefreshResult,
    TeamStatsResult,
    TeamSyncSummary,
)
from .services.goals import GoalExtractionService
from .services.ingestion import IngestionService
from .services.live_refresh import LiveRefreshService
from .services.team_stats import TeamStatsService


class ScoresPipeline:
    """Wires the feed client and the store handle into every component."""

    def __init__(
        self,
        client: NHLFeedClient | None = None,
        session_scope: SessionScope = get_session,
        *,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.client = client or NHLFeedClient()
        self.session_scope = session_scope
        ingestion_kwargs = {"sleep": sleep} if sleep is not None else {}
        self.ingestion = IngestionService(self.client, session_scope, **ingestion_kwargs)
        self.live_refresh = LiveRefreshService(self.client, session_scope)
        self.goals = GoalExtractionService(self.client, session_scope)
        self.team_stats = TeamStatsService(session_scope)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> ScoresPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def ingest(self, backfill_from_year: int | None = None) -> IngestSummary:
        return self.ingestion.ingest(backfill_from_year=backfill_from_year)

    def sync_teams(self) -> TeamSyncSummary:
        return self.ingestion.sync_teams()

    def refresh_game(self, game_id: str) -> RefreshResult:
        return self.live_refresh.refresh_game(str(game_id))

    def extract_goals(self, game_id: str) -> GoalsResult:
        return self.goals.extract_goals(str(game_id))

    def get_team_stats(self, abbreviation: str) -> TeamStatsResult:
        return self.team_stats.get_team_stats(abbreviation.strip().upper())
