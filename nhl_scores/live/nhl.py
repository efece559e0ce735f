"""NHL feed client (stats API + web API).

Thin fetch wrapper: every call returns parsed JSON or raises UpstreamError.
Bulk endpoints (teams, season games, schedule, scores-for-date) back off on
429 responses; per-game live calls never retry so the caller's own throttle
governs pacing.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from ..config import FeedConfig, settings
from ..errors import RateLimitExceeded, UpstreamError
from ..logging import logger
from ..utils.parsing import parse_int
from .nhl_constants import (
    HTTP_TOO_MANY_REQUESTS,
    NHL_CURRENT_SCORES_PATH,
    NHL_PBP_PATH,
    NHL_SCHEDULE_PATH,
    NHL_SCORES_FOR_DATE_PATH,
    NHL_SEASON_GAMES_PATH,
    NHL_TEAMS_PATH,
)


def _is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, UpstreamError) and exc.status == HTTP_TOO_MANY_REQUESTS


class NHLFeedClient:
    """Client for the NHL stats and web feeds."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        config: FeedConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or settings.feed_config
        self.client = client or httpx.Client(
            timeout=self.config.request_timeout_seconds,
            headers={"User-Agent": self.config.user_agent},
        )
        self._sleep = sleep

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> NHLFeedClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def fetch_json(self, url: str) -> Any:
        """GET ``url`` and return the parsed body; non-2xx raises UpstreamError."""
        try:
            response = self.client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("nhl_fetch_error", url=url, error=str(exc))
            raise UpstreamError(f"Request to {url} failed: {exc}", url=url) from exc

        status = response.status_code
        if not 200 <= status < 300:
            retry_after = parse_int(response.headers.get("retry-after"))
            logger.warning(
                "nhl_fetch_failed",
                url=url,
                status=status,
                retry_after=retry_after,
                body=(response.text or "")[:200],
            )
            raise UpstreamError(
                f"{url} answered {status}",
                status=status,
                retry_after=retry_after,
                url=url,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"{url} returned invalid JSON", status=status, url=url) from exc

    def _wait_for_retry_after(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, UpstreamError) and exc.retry_after is not None:
            return float(exc.retry_after)
        return float(self.config.rate_limit_wait_seconds)

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "nhl_rate_limited_backoff",
            attempt=retry_state.attempt_number,
            max_attempts=self.config.max_attempts,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        )

    def fetch_json_with_backoff(self, url: str) -> Any:
        """Like fetch_json, but waits out 429s up to ``max_attempts`` attempts total."""
        retrying = Retrying(
            retry=retry_if_exception(_is_rate_limited),
            wait=self._wait_for_retry_after,
            stop=stop_after_attempt(self.config.max_attempts),
            sleep=self._sleep,
            before_sleep=self._log_backoff,
            reraise=True,
        )
        try:
            return retrying(self.fetch_json, url)
        except UpstreamError as exc:
            if exc.status != HTTP_TOO_MANY_REQUESTS:
                raise
            logger.error("nhl_rate_limit_exceeded", url=url, attempts=self.config.max_attempts)
            raise RateLimitExceeded(
                f"{url} still rate limited after {self.config.max_attempts} attempts",
                status=exc.status,
                retry_after=exc.retry_after,
                url=url,
            ) from exc

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------
    def _stats_url(self, path: str) -> str:
        return self.config.stats_base_url.rstrip("/") + path

    def _web_url(self, path: str) -> str:
        return self.config.web_base_url.rstrip("/") + path

    def fetch_teams(self) -> list[dict[str, Any]]:
        """All franchises, historical ones included."""
        payload = self.fetch_json_with_backoff(self._stats_url(NHL_TEAMS_PATH))
        teams = (payload or {}).get("data") or []
        logger.info("nhl_teams_fetched", count=len(teams))
        return teams

    def fetch_season_games(self, season: str) -> list[dict[str, Any]]:
        """Every game of a season from the stats feed (legacy numeric-id team shape)."""
        url = self._stats_url(NHL_SEASON_GAMES_PATH.format(season=season))
        payload = self.fetch_json_with_backoff(url)
        games = (payload or {}).get("data") or []
        logger.info("nhl_season_games_fetched", season=season, count=len(games))
        return games

    def fetch_schedule(self, day: date) -> list[dict[str, Any]]:
        """Games scheduled on ``day``.

        The schedule endpoint answers with a whole week; only the entry whose
        date matches is kept.
        """
        day_str = day.strftime("%Y-%m-%d")
        payload = self.fetch_json_with_backoff(self._web_url(NHL_SCHEDULE_PATH.format(date=day_str)))
        games: list[dict[str, Any]] = []
        for week_day in (payload or {}).get("gameWeek") or []:
            if week_day.get("date") != day_str:
                continue
            games.extend(g for g in week_day.get("games") or [] if g.get("id") is not None)
        logger.info("nhl_schedule_fetched", date=day_str, count=len(games))
        return games

    def fetch_scores_for_date(self, day: date) -> list[dict[str, Any]]:
        day_str = day.strftime("%Y-%m-%d")
        payload = self.fetch_json_with_backoff(
            self._web_url(NHL_SCORES_FOR_DATE_PATH.format(date=day_str))
        )
        return (payload or {}).get("games") or []

    def fetch_current_scores(self) -> list[dict[str, Any]]:
        """Live/recent scores. No retry: errors propagate immediately."""
        payload = self.fetch_json(self._web_url(NHL_CURRENT_SCORES_PATH))
        return (payload or {}).get("games") or []

    def fetch_play_by_play(self, game_id: str) -> dict[str, Any]:
        """Ordered plays plus roster spots for one game. No retry."""
        url = self._web_url(NHL_PBP_PATH.format(game_id=game_id))
        logger.info("nhl_pbp_fetch", game_id=game_id)
        return self.fetch_json(url) or {}
