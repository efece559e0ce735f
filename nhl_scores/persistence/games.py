"""Game persistence helpers: status transitions and the upsert write policy."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.schemas import CanonicalGame
from ..models.tables import Game, GameStatus
from ..utils.datetime_utils import now_utc


class WriteOutcome(str, Enum):
    created = "created"
    updated = "updated"
    skipped = "skipped"


def _normalize_status(status: str | None) -> str:
    if not status:
        return GameStatus.scheduled.value
    status_normalized = status.strip().upper()
    for known in GameStatus:
        if status_normalized == known.value:
            return known.value
    return GameStatus.scheduled.value


# One-way progression order. Higher index = further along in lifecycle.
_STATUS_ORDER: dict[str, int] = {
    GameStatus.scheduled.value: 0,
    GameStatus.pregame.value: 1,
    GameStatus.live.value: 2,
    GameStatus.final.value: 3,
}


def is_terminal(status: str | None) -> bool:
    return _normalize_status(status) == GameStatus.final.value


def resolve_status_transition(current_status: str | None, incoming_status: str | None) -> str:
    """Resolve a safe status transition without regressing games.

    FINAL is terminal; otherwise the status only moves forward through
    SCHEDULED → PREGAME → LIVE → FINAL.
    """
    current = _normalize_status(current_status)
    incoming = _normalize_status(incoming_status)

    if current == GameStatus.final.value:
        return current
    if _STATUS_ORDER[incoming] < _STATUS_ORDER[current]:
        return current
    return incoming


def get_games_by_ids(session: Session, game_ids: Iterable[str]) -> dict[str, Game]:
    """Load existing rows for a chunk of ids with one IN query."""
    ids = list(game_ids)
    if not ids:
        return {}
    rows = session.execute(select(Game).where(Game.id.in_(ids))).scalars().all()
    return {row.id: row for row in rows}


def _new_game_row(game: CanonicalGame) -> Game:
    return Game(
        id=game.game_id,
        start_time=game.start_time,
        status=_normalize_status(game.status),
        home_abbreviation=game.home.abbreviation,
        home_name=game.home.name,
        home_score=game.home.score,
        home_franchise_id=game.home.franchise_id,
        away_abbreviation=game.away.abbreviation,
        away_name=game.away.name,
        away_score=game.away.score,
        away_franchise_id=game.away.franchise_id,
        locked=False,
        goals={},
        raw=game.raw,
    )


def _overwrite_canonical_fields(row: Game, game: CanonicalGame, status: str) -> None:
    # goals, lock and refresh bookkeeping belong to other writers
    row.start_time = game.start_time
    row.status = status
    row.home_abbreviation = game.home.abbreviation
    row.home_name = game.home.name
    row.home_score = game.home.score
    row.home_franchise_id = game.home.franchise_id
    row.away_abbreviation = game.away.abbreviation
    row.away_name = game.away.name
    row.away_score = game.away.score
    row.away_franchise_id = game.away.franchise_id
    row.raw = game.raw


def apply_game_write(
    session: Session,
    existing: Game | None,
    game: CanonicalGame,
    *,
    require_started: bool,
    now: datetime | None = None,
) -> WriteOutcome:
    """Create, update or skip one game according to the write policy.

    - absent → insert
    - FINAL → never touched
    - otherwise overwrite only when status or a score changed; with
      ``require_started`` the scheduled start must also have passed
    """
    if existing is None:
        session.add(_new_game_row(game))
        return WriteOutcome.created

    if is_terminal(existing.status):
        return WriteOutcome.skipped

    if require_started and (now or now_utc()) < game.start_time:
        return WriteOutcome.skipped

    status = resolve_status_transition(existing.status, game.status)
    changed = (
        status != existing.status
        or game.home.score != existing.home_score
        or game.away.score != existing.away_score
    )
    if not changed:
        return WriteOutcome.skipped

    _overwrite_canonical_fields(existing, game, status)
    return WriteOutcome.updated
