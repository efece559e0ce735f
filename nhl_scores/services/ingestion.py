"""Game ingestion: team registry sync plus the game upsert engine.

Two modes:
- daily: today's schedule, one read-check-write transaction per game
- backfill: whole seasons from the stats feed, committed in bounded batches
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from ..config import IngestConfig, settings
from ..db import SessionScope, get_session
from ..errors import RateLimitExceeded, UpstreamError
from ..live.nhl import NHLFeedClient
from ..logging import logger
from ..models.schemas import (
    BulkTeam,
    CanonicalGame,
    GameEvent,
    IngestSummary,
    TeamSyncSummary,
    parse_game_event,
)
from ..models.tables import Game
from ..normalization import (
    build_team_lookup,
    game_from_bulk,
    game_from_schedule,
    index_scores_by_game,
)
from ..persistence.games import WriteOutcome, apply_game_write, get_games_by_ids
from ..persistence.teams import franchise_ids_for, sync_teams
from ..utils.date_utils import season_ids_between, season_start_year
from ..utils.datetime_utils import now_utc, today_in


@dataclass
class UpsertContext:
    """Side data needed to normalize one upstream game.

    ``team_lookup`` serves the bulk shape, ``live_scores`` the schedule shape.
    """

    team_lookup: Mapping[int, BulkTeam] = field(default_factory=dict)
    live_scores: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    now: datetime | None = None


@dataclass
class _Tally:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: WriteOutcome) -> None:
        if outcome is WriteOutcome.created:
            self.created += 1
        elif outcome is WriteOutcome.updated:
            self.updated += 1
        else:
            self.skipped += 1


def to_canonical_game(session: Session, event: GameEvent, context: UpsertContext) -> CanonicalGame:
    """Resolve either upstream shape into the canonical game."""
    if event.kind == "bulk":
        return game_from_bulk(event, context.team_lookup)
    franchise_ids = franchise_ids_for(
        session, [event.home_team.abbreviation, event.away_team.abbreviation]
    )
    return game_from_schedule(event, context.live_scores, franchise_ids)


def upsert_game(session: Session, event: GameEvent, context: UpsertContext) -> WriteOutcome:
    """Normalize and write one game; the caller owns the transaction.

    Only the daily-schedule shape waits for the scheduled start before
    overwriting a non-final game.
    """
    game = to_canonical_game(session, event, context)
    existing = session.get(Game, game.game_id)
    return apply_game_write(
        session,
        existing,
        game,
        require_started=event.kind == "schedule",
        now=context.now,
    )


def _dedupe_by_id(payloads: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    by_id: dict[str, Mapping[str, Any]] = {}
    anonymous: list[Mapping[str, Any]] = []
    for payload in payloads:
        game_id = payload.get("id")
        if game_id is None:
            anonymous.append(payload)
        else:
            by_id[str(game_id)] = payload
    return [*by_id.values(), *anonymous]


def _chunks(items: Sequence[Any], size: int) -> list[Sequence[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class IngestionService:
    """Fetches schedules/seasons and reconciles them against stored games."""

    def __init__(
        self,
        client: NHLFeedClient,
        session_scope: SessionScope = get_session,
        *,
        config: IngestConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.client = client
        self.session_scope = session_scope
        self.config = config or settings.ingest_config
        self._sleep = sleep
        self._today = today or (lambda: today_in(self.config.timezone))

    # ------------------------------------------------------------------
    # Team registry
    # ------------------------------------------------------------------
    def sync_teams(self, teams: Iterable[Mapping[str, Any]] | None = None) -> TeamSyncSummary:
        """Insert unseen teams; ``teams`` may be an already-fetched feed."""
        payload = list(teams) if teams is not None else self.client.fetch_teams()
        with self.session_scope() as session:
            return sync_teams(session, payload)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def ingest(self, backfill_from_year: int | None = None) -> IngestSummary:
        if backfill_from_year is not None:
            return self._ingest_backfill(backfill_from_year)
        return self._ingest_day(self._today())

    def _ingest_day(self, day: date) -> IngestSummary:
        day_str = day.isoformat()
        logger.info("ingest_day_start", date=day_str)

        schedule = self.client.fetch_schedule(day)
        self.sync_teams()

        live_scores = index_scores_by_game(self.client.fetch_scores_for_date(day)) if schedule else {}
        context = UpsertContext(live_scores=live_scores)
        tally = _Tally()

        for payload in schedule:
            game_id = payload.get("id")
            try:
                event = parse_game_event("schedule", dict(payload))
                context.now = now_utc()
                with self.session_scope() as session:
                    outcome = upsert_game(session, event, context)
            except Exception as exc:
                tally.failed += 1
                logger.warning("ingest_game_failed", game_id=game_id, error=str(exc), mode="daily")
                continue
            tally.record(outcome)
            logger.debug("ingest_game_written", game_id=game_id, outcome=outcome.value)

        return self._summarize(day_str, len(schedule), tally)

    def _ingest_backfill(self, first_year: int) -> IngestSummary:
        last_year = season_start_year(self._today())
        seasons = season_ids_between(first_year, last_year)
        logger.info("ingest_backfill_start", first_year=first_year, seasons=seasons)

        teams = self.client.fetch_teams()
        team_lookup = build_team_lookup(teams)

        raw_games: list[Mapping[str, Any]] = []
        for season in seasons:
            try:
                raw_games.extend(self.client.fetch_season_games(season))
            except RateLimitExceeded:
                raise
            except UpstreamError as exc:
                logger.warning(
                    "ingest_season_fetch_failed", season=season, status=exc.status, error=str(exc)
                )

        self.sync_teams(teams)

        games = _dedupe_by_id(raw_games)
        tally = self.upsert_batched(games, team_lookup)
        return self._summarize(f"{first_year}-{last_year + 1} seasons", len(games), tally)

    # ------------------------------------------------------------------
    # Batch mode
    # ------------------------------------------------------------------
    def upsert_batched(
        self, games: Sequence[Mapping[str, Any]], team_lookup: Mapping[int, BulkTeam]
    ) -> _Tally:
        """Write bulk-shape games in atomic chunks with a pause between chunks.

        A bad record is logged and counted as failed; it never aborts the run.
        """
        tally = _Tally()
        batches = _chunks(games, self.config.batch_size)
        context = UpsertContext(team_lookup=team_lookup)

        for index, batch in enumerate(batches):
            with self.session_scope() as session:
                existing = get_games_by_ids(
                    session, [str(g["id"]) for g in batch if g.get("id") is not None]
                )
                for payload in batch:
                    try:
                        event = parse_game_event("bulk", dict(payload))
                        game = to_canonical_game(session, event, context)
                        outcome = apply_game_write(
                            session, existing.get(game.game_id), game, require_started=False
                        )
                    except Exception as exc:
                        tally.failed += 1
                        logger.warning(
                            "ingest_game_failed",
                            game_id=payload.get("id"),
                            error=str(exc),
                            mode="backfill",
                        )
                        continue
                    tally.record(outcome)

            logger.info(
                "ingest_batch_committed",
                batch=index + 1,
                batches=len(batches),
                processed=min((index + 1) * self.config.batch_size, len(games)),
                total=len(games),
                created=tally.created,
                updated=tally.updated,
                skipped=tally.skipped,
                failed=tally.failed,
            )
            if index < len(batches) - 1:
                self._sleep(self.config.batch_pause_seconds)

        return tally

    @staticmethod
    def _summarize(date_range: str, found: int, tally: _Tally) -> IngestSummary:
        summary = IngestSummary(
            date_range=date_range,
            games_found=found,
            games_created=tally.created,
            games_updated=tally.updated,
            games_skipped=tally.skipped,
            games_failed=tally.failed,
        )
        logger.info("ingest_complete", **summary.model_dump())
        return summary
