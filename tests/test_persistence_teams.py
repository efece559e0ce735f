"""Tests for the insert-only team registry sync."""

from __future__ import annotations

from sqlalchemy import func, select

from nhl_scores.models.tables import Team
from nhl_scores.persistence.teams import find_team, franchise_id_for, franchise_ids_for, sync_teams

from conftest import make_team


def _team_count(session) -> int:
    return session.execute(select(func.count()).select_from(Team)).scalar_one()


class TestSyncTeams:
    def test_inserts_new_teams(self, session_scope, sample_teams):
        with session_scope() as session:
            summary = sync_teams(session, sample_teams)

        assert summary.teams_found == 3
        assert summary.teams_created == 3
        with session_scope() as session:
            tor = find_team(session, "TOR")
            assert tor.display_name == "Toronto Maple Leafs"
            assert tor.franchise_id == 5
            assert tor.logo_url.endswith("TOR_light.svg")
            assert len(tor.id) == 32

    def test_second_sync_creates_nothing(self, session_scope, sample_teams):
        with session_scope() as session:
            sync_teams(session, sample_teams)
        with session_scope() as session:
            summary = sync_teams(session, sample_teams)
            assert _team_count(session) == 3
        assert summary.teams_created == 0

    def test_existing_rows_are_not_updated(self, session_scope, sample_teams):
        with session_scope() as session:
            session.add(make_team("TOR", 5, name="Toronto"))
        with session_scope() as session:
            sync_teams(session, sample_teams)
        with session_scope() as session:
            assert find_team(session, "TOR").display_name == "Toronto"

    def test_missing_tricode_skipped(self, session_scope):
        with session_scope() as session:
            summary = sync_teams(session, [{"id": 99, "franchiseId": 30, "fullName": "Mystery"}])
        assert summary.teams_found == 1
        assert summary.teams_created == 0

    def test_duplicate_tricode_in_feed_inserted_once(self, session_scope):
        teams = [
            {"id": 27, "franchiseId": 27, "fullName": "Quebec Nordiques", "triCode": "QUE"},
            {"id": 77, "franchiseId": 99, "fullName": "Quebec Bulldogs", "triCode": "QUE"},
        ]
        with session_scope() as session:
            summary = sync_teams(session, teams)
            assert _team_count(session) == 1
        assert summary.teams_created == 1


class TestFranchiseLookup:
    def test_known_and_unknown(self, session_scope):
        with session_scope() as session:
            session.add(make_team("TOR", 5))
            session.add(make_team("OLD", None))
        with session_scope() as session:
            assert franchise_id_for(session, "TOR") == 5
            assert franchise_id_for(session, "OLD") == -1
            assert franchise_id_for(session, "XYZ") == -1
            assert franchise_ids_for(session, ["TOR", "XYZ"]) == {"TOR": 5, "XYZ": -1}
