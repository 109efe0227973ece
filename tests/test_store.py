"""Tests for the rating store backends."""

import sqlite3
from datetime import datetime, timezone

import pytest

from power_ratings.config import ClosingLineSource
from power_ratings.exceptions import (
    IntegrityViolationError,
    RosterAlreadyInitializedError,
    StaleRatingError,
    StoreUnavailableError,
)
from power_ratings.engine.store import InMemoryRatingStore, SqliteRatingStore
from power_ratings.models.game import GameAdjustment
from power_ratings.models.team import TeamRating

SEASON = 2026
NOW = datetime(2026, 1, 5, tzinfo=timezone.utc)


def _roster():
    return [
        TeamRating.seed("TeamA", 20.0, SEASON, "ACC"),
        TeamRating.seed("TeamB", 15.0, SEASON),
        TeamRating.seed("TeamC", 10.0, SEASON),
    ]


def _adjustment(game_id="g1", day=3, home="TeamA", away="TeamB", home_before=20.0, away_before=15.0, adj=-1.25):
    return GameAdjustment(
        game_id=game_id,
        season=SEASON,
        date=datetime(2026, 1, day, tzinfo=timezone.utc),
        home_team=home,
        away_team=away,
        is_neutral_site=False,
        home_rating_before=home_before,
        away_rating_before=away_before,
        projected_spread=-7.5,
        closing_spread=-10.0,
        closing_source=ClosingLineSource.SHARP_BOOK,
        difference=-2.5,
        adjustment=adj,
        home_rating_after=home_before - adj,
        away_rating_after=away_before + adj,
        bookmakers=("Pinnacle",),
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = InMemoryRatingStore()
    else:
        s = SqliteRatingStore(str(tmp_path / "ratings.sqlite"))
    s.initialize_season(SEASON, _roster())
    return s


class TestInitialize:
    def test_roster_order_and_values(self, store):
        ratings = store.list_ratings(SEASON)
        assert [r.canonical_name for r in ratings] == ["TeamA", "TeamB", "TeamC"]
        team_a = store.get_rating(SEASON, "TeamA")
        assert team_a.rating == 20.0
        assert team_a.initial_rating == 20.0
        assert team_a.games_processed == 0
        assert team_a.conference == "ACC"
        assert store.seasons() == [SEASON]

    def test_unknown_team(self, store):
        assert store.get_rating(SEASON, "Nobody") is None
        assert store.get_rating(2025, "TeamA") is None

    def test_reinitialize_requires_reset(self, store):
        with pytest.raises(RosterAlreadyInitializedError):
            store.initialize_season(SEASON, _roster())

    def test_reset_replaces_ratings_and_ledger(self, store):
        store.commit_adjustment(_adjustment(), 0, 0, NOW)
        store.initialize_season(SEASON, [TeamRating.seed("TeamZ", 1.0, SEASON)], reset=True)

        assert store.team_names(SEASON) == ["TeamZ"]
        assert store.list_adjustments(SEASON) == []
        assert not store.has_adjustment("g1")

    def test_duplicate_roster_names(self):
        s = InMemoryRatingStore()
        with pytest.raises(ValueError):
            s.initialize_season(SEASON, [TeamRating.seed("X", 1.0, SEASON), TeamRating.seed("X", 2.0, SEASON)])

    def test_seasons_are_independent(self, store):
        store.initialize_season(2025, [TeamRating.seed("TeamA", 5.0, 2025)])
        assert store.get_rating(2025, "TeamA").rating == 5.0
        assert store.get_rating(SEASON, "TeamA").rating == 20.0
        assert store.seasons() == [2025, SEASON]


class TestCommitAdjustment:
    def test_applies_both_sides_and_ledger(self, store):
        assert store.commit_adjustment(_adjustment(), 0, 0, NOW) is True

        home = store.get_rating(SEASON, "TeamA")
        away = store.get_rating(SEASON, "TeamB")
        assert home.rating == 21.25
        assert away.rating == 13.75
        assert home.games_processed == 1
        assert away.games_processed == 1
        assert home.last_updated == NOW
        assert store.get_rating(SEASON, "TeamC").games_processed == 0

        assert store.has_adjustment("g1")
        ledger = store.list_adjustments(SEASON)
        assert len(ledger) == 1
        assert ledger[0] == _adjustment()

    def test_duplicate_game_is_noop(self, store):
        store.commit_adjustment(_adjustment(), 0, 0, NOW)
        assert store.commit_adjustment(_adjustment(home_before=21.25, away_before=13.75), 1, 1, NOW) is False
        assert store.get_rating(SEASON, "TeamA").rating == 21.25
        assert len(store.list_adjustments()) == 1

    def test_stale_version_rejected_and_nothing_written(self, store):
        with pytest.raises(StaleRatingError):
            store.commit_adjustment(_adjustment(), 0, 3, NOW)
        assert store.get_rating(SEASON, "TeamA").rating == 20.0
        assert store.get_rating(SEASON, "TeamA").games_processed == 0
        assert not store.has_adjustment("g1")

    def test_before_value_mismatch(self, store):
        with pytest.raises(IntegrityViolationError):
            store.commit_adjustment(_adjustment(home_before=19.0), 0, 0, NOW)
        assert store.list_adjustments() == []
        assert store.get_rating(SEASON, "TeamB").rating == 15.0

    def test_missing_team(self, store):
        with pytest.raises(IntegrityViolationError):
            store.commit_adjustment(_adjustment(away="Ghost"), 0, 0, NOW)
        assert store.get_rating(SEASON, "TeamA").rating == 20.0

    def test_ledger_sorted_by_game_date(self, store):
        store.commit_adjustment(_adjustment("late", day=9), 0, 0, NOW)
        store.commit_adjustment(
            _adjustment("early", day=2, home="TeamC", away="TeamA", home_before=10.0, away_before=21.25, adj=0.5),
            0,
            1,
            NOW,
        )
        assert [a.game_id for a in store.list_adjustments(SEASON)] == ["early", "late"]
        assert store.list_adjustments(2025) == []

    def test_reads_are_copies(self, store):
        rating = store.get_rating(SEASON, "TeamA")
        rating.rating = 99.0
        assert store.get_rating(SEASON, "TeamA").rating == 20.0


class TestSqliteRatingStore:
    def test_rejects_memory_path(self):
        with pytest.raises(ValueError):
            SqliteRatingStore(":memory:")

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "nested" / "ratings.sqlite")
        first = SqliteRatingStore(path)
        first.initialize_season(SEASON, _roster())
        first.commit_adjustment(_adjustment(), 0, 0, NOW)

        second = SqliteRatingStore(path)
        assert second.get_rating(SEASON, "TeamA").rating == 21.25
        assert second.list_adjustments()[0].bookmakers == ("Pinnacle",)

    def test_locked_database_is_transient(self, tmp_path):
        path = str(tmp_path / "ratings.sqlite")
        store = SqliteRatingStore(path, timeout=0.05)
        store.initialize_season(SEASON, _roster())

        blocker = sqlite3.connect(path, isolation_level=None)
        blocker.execute("BEGIN EXCLUSIVE")
        try:
            with pytest.raises(StoreUnavailableError):
                store.commit_adjustment(_adjustment(), 0, 0, NOW)
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()

        assert store.get_rating(SEASON, "TeamA").rating == 20.0
        assert store.commit_adjustment(_adjustment(), 0, 0, NOW) is True
