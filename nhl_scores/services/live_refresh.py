"""Per-game live score refresh guarded by a row-level advisory lock.

Lifecycle of one refresh:

1. FINAL games answer from the stored row; no upstream call, no lock.
2. Acquire: in one transaction, re-read the row FOR UPDATE, enforce the
   minimum refresh interval, refuse if another refresh holds the lock (unless
   that lock is stale), then set ``locked``.
3. Call the current-scores feed and locate the game.
4. Write scores, status, raw payload and ``last_refreshed_at`` while clearing
   the lock. Any failure after step 2 clears the lock before re-raising.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import RefreshConfig, settings
from ..db import SessionScope, get_session
from ..errors import Conflict, NotFound, TooFrequent
from ..live.nhl import NHLFeedClient
from ..logging import logger
from ..models.schemas import RefreshResult
from ..models.tables import Game
from ..normalization import map_game_state
from ..persistence.games import is_terminal, resolve_status_transition
from ..utils.datetime_utils import now_utc
from ..utils.parsing import parse_int


def _stored_result(game: Game) -> RefreshResult:
    return RefreshResult(
        game_id=game.id,
        home_score=game.home_score or 0,
        away_score=game.away_score or 0,
        status=game.status,
        source="database",
    )


def _load_for_update(session: Session, game_id: str) -> Game:
    stmt = select(Game).where(Game.id == game_id).with_for_update()
    game = session.execute(stmt).scalars().first()
    if game is None:
        raise NotFound(f"Game {game_id} not found")
    return game


class LiveRefreshService:
    def __init__(
        self,
        client: NHLFeedClient,
        session_scope: SessionScope = get_session,
        *,
        config: RefreshConfig | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.client = client
        self.session_scope = session_scope
        self.config = config or settings.refresh_config
        self._clock = clock

    def refresh_game(self, game_id: str) -> RefreshResult:
        with self.session_scope() as session:
            game = session.get(Game, game_id)
            if game is None:
                raise NotFound(f"Game {game_id} not found")
            if is_terminal(game.status):
                return _stored_result(game)

        stored = self._acquire(game_id)
        if stored is not None:
            return stored

        try:
            upstream = self._find_upstream_game(game_id)
        except Exception:
            self._release(game_id)
            raise

        return self._write_and_release(game_id, upstream)

    def _acquire(self, game_id: str) -> RefreshResult | None:
        """Take the lock; returns a stored result when the game turned FINAL meanwhile."""
        with self.session_scope() as session:
            game = _load_for_update(session, game_id)
            if is_terminal(game.status):
                return _stored_result(game)

            now = self._clock()
            min_interval = timedelta(seconds=self.config.min_interval_seconds)
            if game.last_refreshed_at is not None and now - game.last_refreshed_at < min_interval:
                wait = (game.last_refreshed_at + min_interval - now).total_seconds()
                logger.info("live_refresh_too_frequent", game_id=game_id, retry_after=wait)
                raise TooFrequent(
                    f"Game {game_id} was refreshed less than "
                    f"{self.config.min_interval_seconds:g}s ago",
                    retry_after_seconds=wait,
                )

            if game.locked:
                stale_after = timedelta(seconds=self.config.lock_stale_after_seconds)
                if game.locked_at is None:
                    # Holder unknown: start the lease now so it can expire later
                    game.locked_at = now
                    held = True
                else:
                    held = now - game.locked_at < stale_after
                if not held:
                    logger.warning(
                        "live_refresh_stale_lock_reclaimed",
                        game_id=game_id,
                        locked_at=str(game.locked_at),
                    )
            else:
                held = False

            if not held:
                game.locked = True
                game.locked_at = now

        # Raised after the scope commits so a backfilled lease is kept
        if held:
            logger.info("live_refresh_conflict", game_id=game_id)
            raise Conflict(f"Game {game_id} is locked by another refresh")
        return None

    def _find_upstream_game(self, game_id: str) -> dict:
        for candidate in self.client.fetch_current_scores():
            if str(candidate.get("id")) == game_id:
                return candidate
        logger.warning("live_refresh_not_in_feed", game_id=game_id)
        raise NotFound(f"Game {game_id} not found in the current scores feed")

    def _release(self, game_id: str) -> None:
        with self.session_scope() as session:
            game = session.get(Game, game_id)
            if game is not None:
                game.locked = False
                game.locked_at = None
        logger.debug("live_refresh_lock_released", game_id=game_id)

    def _write_and_release(self, game_id: str, upstream: dict) -> RefreshResult:
        home_score = parse_int((upstream.get("homeTeam") or {}).get("score")) or 0
        away_score = parse_int((upstream.get("awayTeam") or {}).get("score")) or 0
        incoming_status = map_game_state(upstream.get("gameState"))

        try:
            with self.session_scope() as session:
                game = _load_for_update(session, game_id)
                if is_terminal(game.status):
                    # Finalized by another writer while the feed call was in flight
                    game.locked = False
                    game.locked_at = None
                    logger.info("live_refresh_finalized_meanwhile", game_id=game_id)
                    return _stored_result(game)

                status = resolve_status_transition(game.status, incoming_status)
                game.home_score = home_score
                game.away_score = away_score
                game.status = status
                game.raw = upstream
                game.last_refreshed_at = self._clock()
                game.locked = False
                game.locked_at = None
        except Exception:
            self._release(game_id)
            raise

        logger.info(
            "live_refresh_complete",
            game_id=game_id,
            home_score=home_score,
            away_score=away_score,
            status=status,
            upstream_state=upstream.get("gameState"),
        )
        return RefreshResult(
            game_id=game_id,
            home_score=home_score,
            away_score=away_score,
            status=status,
            source="api",
        )
