"""Tests for closing line extraction and odds-to-schedule matching."""

import pytest

from power_ratings.config import ClosingLineSource, RatingsConfig
from power_ratings.data.team_name_resolver import TeamNameResolver
from power_ratings.engine.lines import (
    attach_closing_lines,
    extract_closing_spread,
    home_spread_from_book,
    match_odds_game,
)
from power_ratings.exceptions import OddsPayloadError
from power_ratings.models.game import GameToProcess


def _book(key, title, home, point, away="Kansas Jayhawks"):
    return {
        "key": key,
        "title": title,
        "markets": [
            {
                "key": "spreads",
                "outcomes": [
                    {"name": home, "point": point},
                    {"name": away, "point": -point if isinstance(point, float) else None},
                ],
            }
        ],
    }


def _odds_game(*books, home="Duke Blue Devils", away="Kansas Jayhawks", game_id="odds-1"):
    return {
        "id": game_id,
        "home_team": home,
        "away_team": away,
        "commence_time": "2026-01-10T19:00:00Z",
        "bookmakers": list(books),
    }


HOME = "Duke Blue Devils"


class TestSharpBook:
    def test_uses_designated_book(self):
        payload = _odds_game(
            _book("pinnacle", "Pinnacle", HOME, -7.5),
            _book("draftkings", "DraftKings", HOME, -6.5),
        )
        result = extract_closing_spread(payload, ClosingLineSource.SHARP_BOOK)
        assert result.available
        assert result.spread == -7.5
        assert result.source == ClosingLineSource.SHARP_BOOK
        assert result.bookmakers == ["Pinnacle"]

    def test_missing_book_is_unavailable_without_fallback(self):
        payload = _odds_game(
            _book("draftkings", "DraftKings", HOME, -6.5),
            _book("fanduel", "FanDuel", HOME, -7.0),
        )
        result = extract_closing_spread(payload, ClosingLineSource.SHARP_BOOK)
        assert not result.available
        assert result.spread is None
        assert result.bookmakers == []

    def test_missing_spreads_market(self):
        book = {"key": "pinnacle", "title": "Pinnacle", "markets": [{"key": "h2h", "outcomes": []}]}
        result = extract_closing_spread(_odds_game(book), "sharp_book")
        assert result.spread is None

    def test_configured_sharp_book(self):
        payload = _odds_game(_book("circa", "Circa", HOME, -8.0))
        config = RatingsConfig(sharp_book="circa")
        assert extract_closing_spread(payload, "sharp_book", config=config).spread == -8.0


class TestConsensusAverage:
    def test_average_rounded_to_half_point(self):
        payload = _odds_game(
            _book("draftkings", "DraftKings", HOME, -7.0),
            _book("fanduel", "FanDuel", HOME, -7.5),
        )
        result = extract_closing_spread(payload, ClosingLineSource.CONSENSUS_AVERAGE)
        assert result.spread == -7.0
        assert result.bookmakers == ["DraftKings", "FanDuel"]

    def test_ignores_books_outside_roster(self):
        payload = _odds_game(
            _book("pinnacle", "Pinnacle", HOME, -12.0),
            _book("betmgm", "BetMGM", HOME, -6.0),
            _book("betrivers", "BetRivers", HOME, -6.5),
            _book("williamhill_us", "Caesars", HOME, -6.0),
        )
        result = extract_closing_spread(payload, "consensus_average")
        assert result.spread == -6.0
        assert result.bookmakers == ["BetMGM", "BetRivers", "Caesars"]

    def test_none_present(self):
        payload = _odds_game(_book("pinnacle", "Pinnacle", HOME, -7.5))
        assert extract_closing_spread(payload, "consensus").spread is None


class TestOutcomeNames:
    def test_home_name_must_match_exactly(self):
        payload = _odds_game(_book("pinnacle", "Pinnacle", HOME, -7.5))
        assert extract_closing_spread(payload, "sharp_book", home_team="Duke").spread is None

    def test_explicit_home_name(self):
        book = _book("pinnacle", "Pinnacle", "Duke", -3.0)
        assert home_spread_from_book(book, "Duke") == -3.0

    def test_missing_point(self):
        book = {"key": "pinnacle", "markets": [{"key": "spreads", "outcomes": [{"name": HOME}]}]}
        assert home_spread_from_book(book, HOME) is None


class TestMalformedPayloads:
    def test_bookmakers_not_a_list(self):
        payload = _odds_game()
        payload["bookmakers"] = {"pinnacle": {}}
        with pytest.raises(OddsPayloadError):
            extract_closing_spread(payload, "sharp_book")

    def test_non_numeric_point(self):
        payload = _odds_game(_book("pinnacle", "Pinnacle", HOME, "abc"))
        with pytest.raises(OddsPayloadError):
            extract_closing_spread(payload, "sharp_book")

    def test_payload_not_an_object(self):
        with pytest.raises(OddsPayloadError):
            extract_closing_spread(["not", "a", "game"], "sharp_book")

    def test_empty_bookmakers_is_just_unavailable(self):
        assert extract_closing_spread(_odds_game(), "sharp_book").spread is None


class TestAttachClosingLines:
    @pytest.fixture
    def resolver(self):
        return TeamNameResolver(["Duke", "Kansas", "North Carolina"])

    def test_match_odds_game_across_spellings(self, resolver):
        odds = [
            _odds_game(home="North Carolina Tar Heels", away="Duke Blue Devils", game_id="x"),
            _odds_game(game_id="y"),
        ]
        assert match_odds_game("Duke", "Kansas", odds, resolver)["id"] == "y"
        assert match_odds_game("Kansas", "Duke", odds, resolver) is None

    def test_attach_fills_only_missing_lines(self, resolver):
        odds = [_odds_game(_book("pinnacle", "Pinnacle", HOME, -7.5))]
        games = [
            GameToProcess("g1", "2026-01-10", "Duke", "Kansas"),
            GameToProcess("g2", "2026-01-10", "Duke", "Kansas", closing_spread=-2.0),
            GameToProcess("g3", "2026-01-11", "Kansas", "North Carolina"),
        ]
        attached = attach_closing_lines(games, odds, resolver, RatingsConfig())

        assert attached == 1
        assert games[0].closing_spread == -7.5
        assert games[0].closing_source == ClosingLineSource.SHARP_BOOK
        assert games[0].bookmakers == ["Pinnacle"]
        assert games[1].closing_spread == -2.0
        assert games[2].closing_spread is None
