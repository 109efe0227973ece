"""Closing line extraction from odds-feed payloads.

A payload covers one game and carries quotes from several books::

    {"id": ..., "home_team": "Duke Blue Devils", "away_team": ...,
     "bookmakers": [{"key": "pinnacle", "title": "Pinnacle",
                     "markets": [{"key": "spreads",
                                  "outcomes": [{"name": "Duke Blue Devils", "point": -7.5}]}]}]}

Absence of a usable quote is a normal outcome (``spread=None``). A payload
that is structurally broken raises ``OddsPayloadError``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config import ClosingLineSource, RatingsConfig
from ..data.team_name_resolver import TeamNameResolver
from ..exceptions import OddsPayloadError
from ..models.game import ClosingLineResult
from ..models.team import utc_now
from .projection import round_to_increment

logger = logging.getLogger(__name__)

SPREADS_MARKET = "spreads"


def _as_list(value, what: str) -> List:
    if value is None:
        return []
    if not isinstance(value, list):
        raise OddsPayloadError(f"{what} must be a list, got {type(value).__name__}")
    return value


def _find_bookmaker(bookmakers: Sequence[Dict], key: str) -> Optional[Dict]:
    for book in bookmakers:
        if not isinstance(book, dict):
            raise OddsPayloadError(f"bookmaker entry must be an object, got {book!r}")
        if book.get("key") == key:
            return book
    return None


def home_spread_from_book(book: Dict, home_team: str) -> Optional[float]:
    """The book's spread for ``home_team``, or None if the market/outcome is absent.

    Outcome names must equal ``home_team`` exactly; no fuzzy matching here.
    """
    markets = _as_list(book.get("markets"), f"markets for {book.get('key')}")
    market = next((m for m in markets if isinstance(m, dict) and m.get("key") == SPREADS_MARKET), None)
    if market is None:
        return None

    outcomes = _as_list(market.get("outcomes"), f"outcomes for {book.get('key')}")
    for outcome in outcomes:
        if not isinstance(outcome, dict) or outcome.get("name") != home_team:
            continue
        point = outcome.get("point")
        if point is None:
            return None
        try:
            return float(point)
        except (TypeError, ValueError) as e:
            raise OddsPayloadError(f"non-numeric spread point {point!r} from {book.get('key')}") from e
    return None


def extract_closing_spread(
    odds_game: Dict,
    source: ClosingLineSource,
    home_team: Optional[str] = None,
    config: Optional[RatingsConfig] = None,
) -> ClosingLineResult:
    """
    Select a single closing spread for one game under a source policy.

    Args:
        odds_game: One game's odds payload
        source: ``SHARP_BOOK`` (one designated book, no fallback) or
            ``CONSENSUS_AVERAGE`` (mean of the configured books, rounded to the half point)
        home_team: Name the outcomes must carry; defaults to the payload's ``home_team``
        config: Supplies the designated sharp book, consensus roster and increment

    Returns:
        ClosingLineResult; ``spread`` is None when unavailable
    """
    config = config or RatingsConfig()
    source = ClosingLineSource.parse(source)
    if not isinstance(odds_game, dict):
        raise OddsPayloadError(f"odds game must be an object, got {type(odds_game).__name__}")

    result = ClosingLineResult(spread=None, source=source, bookmakers=[], timestamp=utc_now())
    home = home_team if home_team is not None else odds_game.get("home_team")
    bookmakers = _as_list(odds_game.get("bookmakers"), "bookmakers")
    if not home or not bookmakers:
        return result

    if source == ClosingLineSource.SHARP_BOOK:
        book = _find_bookmaker(bookmakers, config.sharp_book)
        if book is None:
            return result
        spread = home_spread_from_book(book, home)
        if spread is not None:
            result.spread = spread
            result.bookmakers = [book.get("title") or config.sharp_book]
        return result

    spreads: List[float] = []
    used: List[str] = []
    for key in config.consensus_books:
        book = _find_bookmaker(bookmakers, key)
        if book is None:
            continue
        spread = home_spread_from_book(book, home)
        if spread is not None:
            spreads.append(spread)
            used.append(book.get("title") or key)

    if spreads:
        result.spread = round_to_increment(float(np.mean(spreads)), config.consensus_increment)
        result.bookmakers = used
    return result


def match_odds_game(
    home_team: str,
    away_team: str,
    odds_games: Sequence[Dict],
    resolver: TeamNameResolver,
) -> Optional[Dict]:
    """
    Find the odds payload for a schedule game by resolving both feeds onto the roster.

    Returns None when no payload resolves to the same home/away pair.
    """
    home = resolver.resolve(home_team).canonical_name
    away = resolver.resolve(away_team).canonical_name
    if home is None or away is None:
        return None

    for odds_game in odds_games:
        odds_home = resolver.resolve(odds_game.get("home_team", "")).canonical_name
        odds_away = resolver.resolve(odds_game.get("away_team", "")).canonical_name
        if odds_home == home and odds_away == away:
            return odds_game
    return None


def attach_closing_lines(games, odds_games: Sequence[Dict], resolver: TeamNameResolver, config: RatingsConfig) -> int:
    """
    Fill in ``closing_spread`` for games that arrive without one.

    Games keep ``None`` when no odds payload matches or the policy finds no
    line; the processor then skips them. Returns the number of lines attached.
    """
    attached = 0
    for game in games:
        if game.closing_spread is not None:
            continue
        odds_game = match_odds_game(game.home_team, game.away_team, odds_games, resolver)
        if odds_game is None:
            logger.info(f"No odds payload for game {game.game_id} ({game.away_team} at {game.home_team})")
            continue
        line = extract_closing_spread(odds_game, config.closing_source, config=config)
        if line.available:
            game.closing_spread = line.spread
            game.closing_source = line.source
            game.bookmakers = list(line.bookmakers)
            attached += 1
    return attached
