"""Scheduled tasks: daily ingestion and live refresh of in-progress games.

Each task holds a Redis lock so a slow run never overlaps the next beat.
"""

from __future__ import annotations

from datetime import datetime

from celery import shared_task
from sqlalchemy import select

from ..db import get_session
from ..errors import Conflict, NotFound, TooFrequent
from ..logging import logger
from ..models.tables import Game, GameStatus
from ..pipeline import ScoresPipeline
from ..utils.datetime_utils import now_utc
from ..utils.redis_lock import LOCK_TIMEOUT_1MIN, LOCK_TIMEOUT_2HOURS, job_lock


def active_game_ids(now: datetime | None = None) -> list[str]:
    """Ids of non-final games whose scheduled start has passed."""
    now = now or now_utc()
    stmt = (
        select(Game.id)
        .where(Game.status != GameStatus.final.value)
        .where(Game.start_time <= now)
        .order_by(Game.start_time)
    )
    with get_session() as session:
        return list(session.execute(stmt).scalars().all())


@shared_task(name="run_ingestion")
def run_ingestion(backfill_from_year: int | None = None) -> dict:
    """Daily ingestion, or a backfill when ``backfill_from_year`` is given."""
    with job_lock("lock:run_ingestion", timeout=LOCK_TIMEOUT_2HOURS) as acquired:
        if not acquired:
            logger.debug("run_ingestion_skipped_locked")
            return {"skipped": True, "reason": "locked"}
        with ScoresPipeline() as pipeline:
            summary = pipeline.ingest(backfill_from_year=backfill_from_year)
        return summary.model_dump()


@shared_task(name="refresh_active_games")
def refresh_active_games() -> dict:
    """Refresh every started, non-final game once.

    Throttled, locked and vanished games are counted and skipped; any other
    error aborts the sweep so the next beat retries from scratch.
    """
    with job_lock("lock:refresh_active_games", timeout=LOCK_TIMEOUT_1MIN) as acquired:
        if not acquired:
            logger.debug("refresh_active_games_skipped_locked")
            return {"skipped": True, "reason": "locked"}

        counts = {"refreshed": 0, "throttled": 0, "conflicts": 0, "missing": 0}
        game_ids = active_game_ids()
        with ScoresPipeline() as pipeline:
            for game_id in game_ids:
                try:
                    pipeline.refresh_game(game_id)
                except TooFrequent:
                    counts["throttled"] += 1
                except Conflict:
                    counts["conflicts"] += 1
                except NotFound:
                    counts["missing"] += 1
                else:
                    counts["refreshed"] += 1

        logger.info("refresh_active_games_complete", games=len(game_ids), **counts)
        return counts
