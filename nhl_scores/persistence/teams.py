"""Team registry persistence: insert-only sync keyed by abbreviation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..logging import logger
from ..models.schemas import UNKNOWN_FRANCHISE_ID, BulkTeam, TeamSyncSummary
from ..models.tables import Team


def find_team(session: Session, abbreviation: str) -> Team | None:
    """First team registered under ``abbreviation``."""
    stmt = select(Team).where(Team.abbreviation == abbreviation).limit(1)
    return session.execute(stmt).scalars().first()


def franchise_id_for(session: Session, abbreviation: str) -> int:
    """Franchise id for an abbreviation, or the -1 sentinel when unknown."""
    team = find_team(session, abbreviation)
    if team is None or team.franchise_id is None:
        return UNKNOWN_FRANCHISE_ID
    return team.franchise_id


def franchise_ids_for(session: Session, abbreviations: Iterable[str]) -> dict[str, int]:
    return {abbr: franchise_id_for(session, abbr) for abbr in set(abbreviations)}


def sync_teams(session: Session, teams: Iterable[Mapping[str, Any]]) -> TeamSyncSummary:
    """Insert every upstream team whose abbreviation is not registered yet.

    Existing rows are never updated or removed. Read-then-insert is not
    race-proof against a concurrent sync; the team set changes rarely.
    """
    found = 0
    created = 0
    seen: set[str] = set()

    for payload in teams:
        found += 1
        team = BulkTeam.from_payload(dict(payload))
        if not team.tri_code:
            logger.warning("team_sync_missing_tricode", team_id=team.team_id)
            continue
        # The stats feed can list one abbreviation under several franchises
        if team.tri_code in seen or find_team(session, team.tri_code) is not None:
            seen.add(team.tri_code)
            continue
        seen.add(team.tri_code)

        row = Team(
            abbreviation=team.tri_code,
            display_name=team.full_name,
            franchise_id=team.franchise_id,
            logo_url=settings.feed_config.logo_url_template.format(abbreviation=team.tri_code),
        )
        session.add(row)
        session.flush()
        created += 1
        logger.info(
            "team_created",
            team_id=row.id,
            abbreviation=row.abbreviation,
            name=row.display_name,
            franchise_id=row.franchise_id,
        )

    logger.info("team_sync_complete", teams_found=found, teams_created=created)
    return TeamSyncSummary(teams_found=found, teams_created=created)
