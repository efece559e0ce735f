"""Tests for the team statistics cache."""

from __future__ import annotations

import pytest

from nhl_scores.config import StatsConfig
from nhl_scores.errors import NotFound
from nhl_scores.models.tables import Team
from nhl_scores.persistence.teams import find_team
from nhl_scores.services.team_stats import TeamStatsService, is_cache_stale

from conftest import make_game, make_team, utc

TOR = 5

# (game id, TOR at home?, TOR goals, opponent goals, October day)
TEN_GAMES = [
    ("g01", True, 4, 1, 10),
    ("g02", False, 3, 1, 11),
    ("g03", True, 3, 2, 12),
    ("g04", False, 2, 0, 13),
    ("g05", True, 2, 3, 14),
    ("g06", False, 2, 1, 15),
    ("g07", True, 5, 0, 16),
    ("g08", False, 1, 4, 17),
    ("g09", True, 1, 2, 18),
    ("g10", False, 2, 3, 19),
]


def _tor_game(game_id, tor_home, tor_goals, opp_goals, start, status="FINAL"):
    tor = ("TOR", TOR, tor_goals)
    opp = ("MTL", 1, opp_goals)
    home, away = (tor, opp) if tor_home else (opp, tor)
    return make_game(game_id, start_time=start, status=status, home=home, away=away)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock(utc(2024, 11, 20, 12))


@pytest.fixture
def service(session_scope, clock):
    return TeamStatsService(session_scope, config=StatsConfig(), clock=clock)


@pytest.fixture
def seeded(session_scope):
    with session_scope() as session:
        session.add(make_team("TOR", TOR, name="Toronto Maple Leafs"))
        session.add(make_team("MTL", 1))
        for game_id, home, own, opp, day in TEN_GAMES:
            session.add(_tor_game(game_id, home, own, opp, utc(2024, 10, day, 23)))
        # not TOR, not final
        session.add(make_game("other", start_time=utc(2024, 10, 12, 23), home=("MTL", 1, 9), away=("BOS", 6, 0)))
        session.add(_tor_game("live", True, 7, 0, utc(2024, 10, 20, 23), status="LIVE"))


class TestTeamStats:
    def test_ten_game_record(self, service, seeded):
        result = service.get_team_stats("TOR")

        assert result.source == "api"
        assert result.team_name == "Toronto Maple Leafs"
        assert result.franchise_id == TOR
        assert result.games_played == 10
        assert result.wins == 6
        assert result.losses == 4
        assert result.total_goals == 25
        assert result.wins + result.losses == result.games_played

    def test_recent_games_newest_first(self, service, seeded):
        result = service.get_team_stats("TOR")
        assert result.recent_games == ["g10", "g09", "g08", "g07", "g06"]

    def test_current_season_split(self, service, seeded, session_scope):
        with session_scope() as session:
            session.add(_tor_game("old", True, 6, 0, utc(2024, 3, 1, 23)))

        result = service.get_team_stats("TOR")

        assert result.season == "20242025"
        assert result.season_games_played == 10
        assert result.season_total_goals == 25
        assert result.games_played == 11
        assert result.total_goals == 31

    def test_second_call_served_from_cache(self, service, seeded, clock):
        first = service.get_team_stats("TOR")
        clock.now = utc(2024, 11, 20, 13)
        second = service.get_team_stats("TOR")

        assert second.source == "cache"
        assert second.cached_at == first.cached_at
        assert second.games_played == 10

    def test_new_final_game_invalidates_cache(self, service, seeded, session_scope, clock):
        service.get_team_stats("TOR")
        with session_scope() as session:
            session.add(_tor_game("g11", True, 3, 0, utc(2024, 11, 21, 0)))
        clock.now = utc(2024, 11, 21, 3)

        result = service.get_team_stats("TOR")

        assert result.source == "api"
        assert result.games_played == 11
        assert result.wins == 7
        assert result.recent_games[0] == "g11"
        assert result.cached_at == clock.now

    def test_tie_counts_as_loss(self, service, session_scope):
        with session_scope() as session:
            session.add(make_team("TOR", TOR))
            session.add(_tor_game("tie", True, 2, 2, utc(2024, 10, 10, 23)))

        result = service.get_team_stats("TOR")
        assert (result.wins, result.losses) == (0, 1)

    def test_team_without_games(self, service, session_scope):
        with session_scope() as session:
            session.add(make_team("SEA", 39))

        result = service.get_team_stats("SEA")
        assert result.games_played == 0
        assert result.recent_games == []

    def test_snapshot_persisted_on_team(self, service, seeded, session_scope):
        service.get_team_stats("TOR")
        with session_scope() as session:
            team = find_team(session, "TOR")
            assert team.wins == 6
            assert team.recent_game_ids[0] == "g10"
            assert not is_cache_stale(session, team)


class TestTeamStatsErrors:
    def test_unknown_team(self, service):
        with pytest.raises(NotFound):
            service.get_team_stats("XYZ")

    @pytest.mark.parametrize("franchise_id", [None, -1])
    def test_invalid_franchise(self, service, session_scope, franchise_id):
        with session_scope() as session:
            session.add(make_team("OLD", franchise_id))
        with pytest.raises(NotFound):
            service.get_team_stats("OLD")


class TestCacheStaleness:
    def test_never_computed_is_stale(self, session_scope):
        with session_scope() as session:
            team = make_team("TOR", TOR)
            session.add(team)
            session.flush()
            assert is_cache_stale(session, team)

    def test_only_final_games_count(self, session_scope):
        with session_scope() as session:
            team = make_team("TOR", TOR, cached_at=utc(2024, 10, 1))
            session.add(team)
            session.add(_tor_game("future", True, 0, 0, utc(2024, 10, 5), status="SCHEDULED"))
            session.flush()
            assert not is_cache_stale(session, team)
            session.add(_tor_game("done", True, 1, 0, utc(2024, 10, 6)))
            session.flush()
            assert is_cache_stale(session, team)


class TestSeasonRollover:
    def test_cache_recomputed_when_season_changes(self, session_scope):
        clock = Clock(utc(2025, 9, 30, 12))
        service = TeamStatsService(session_scope, config=StatsConfig(), clock=clock)
        with session_scope() as session:
            session.add(make_team("TOR", TOR))
            session.add(_tor_game("spring", True, 4, 1, utc(2025, 4, 10, 23)))

        before = service.get_team_stats("TOR")
        assert before.season == "20242025"
        assert before.season_games_played == 1

        clock.now = utc(2025, 10, 5, 12)
        after = service.get_team_stats("TOR")

        assert after.source == "api"
        assert after.season == "20252026"
        assert after.season_games_played == 0
        assert after.games_played == 1
        assert after.cached_at == clock.now

    def test_same_season_still_served_from_cache(self, session_scope):
        clock = Clock(utc(2025, 10, 2, 12))
        service = TeamStatsService(session_scope, config=StatsConfig(), clock=clock)
        with session_scope() as session:
            session.add(make_team("TOR", TOR))

        service.get_team_stats("TOR")
        clock.now = utc(2025, 12, 1, 12)
        assert service.get_team_stats("TOR").source == "cache"
