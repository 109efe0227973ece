"""Adjustment processor: turns one finished game and its closing line into a rating update."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..config import RatingsConfig
from ..data.neutral_site import infer_neutral_site
from ..data.overrides import OverrideTable
from ..data.team_name_resolver import TeamNameResolver
from ..models.game import GameAdjustment, GameToProcess, SkipReason
from ..models.team import utc_now
from .projection import calculate_adjustment, project_spread, round_to_increment
from .store import RatingStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessOutcome:
    """Terminal state of one game: adjusted (with its ledger row) or skipped (with a reason)."""

    game_id: str
    adjustment: Optional[GameAdjustment] = None
    skip_reason: Optional[SkipReason] = None
    detail: str = ""
    home_name: Optional[str] = None
    away_name: Optional[str] = None

    @property
    def processed(self) -> bool:
        return self.adjustment is not None

    @classmethod
    def skipped(cls, game: GameToProcess, reason: SkipReason, detail: str = "", **names) -> "ProcessOutcome":
        return cls(game_id=game.game_id, skip_reason=reason, detail=detail, **names)


class AdjustmentProcessor:
    """
    Applies the market feedback rule to one game at a time.

    Per game: skip if already in the ledger, resolve both names against the
    season roster, project the spread from current ratings, require a
    closing line, then move half the gap onto the ratings (home down by the
    adjustment, away up by it) and write the ledger row in one commit.

    Every read-compute-commit runs under the store's write lock, so two
    adjustments never interleave on the same team.
    """

    def __init__(
        self,
        store: RatingStore,
        config: Optional[RatingsConfig] = None,
        overrides: Optional[OverrideTable] = None,
        mascots=None,
    ):
        self.store = store
        self.config = config or RatingsConfig()
        self.overrides = overrides
        self.mascots = mascots
        self._resolvers: Dict[int, Tuple[Tuple[str, ...], TeamNameResolver]] = {}

    def resolver_for(self, season: int) -> TeamNameResolver:
        """Resolver over the season's current roster, rebuilt only when the roster changes."""
        names = tuple(self.store.team_names(season))
        cached = self._resolvers.get(season)
        if cached and cached[0] == names:
            return cached[1]
        resolver = TeamNameResolver(names, overrides=self.overrides, mascots=self.mascots)
        self._resolvers[season] = (names, resolver)
        return resolver

    def season_of(self, game: GameToProcess) -> int:
        return game.season if game.season is not None else self.config.season

    def process(self, game: GameToProcess) -> ProcessOutcome:
        """
        Process one game.

        Returns:
            ProcessOutcome; data-quality problems come back as skips

        Raises:
            IntegrityViolationError: store/ledger inconsistency (never swallowed)
            StoreUnavailableError: transient failure before commit; nothing was written
        """
        with self.store.write_lock():
            return self._process_locked(game)

    def _process_locked(self, game: GameToProcess) -> ProcessOutcome:
        if self.store.has_adjustment(game.game_id):
            return ProcessOutcome.skipped(game, SkipReason.ALREADY_PROCESSED, "game already in ledger")

        season = self.season_of(game)
        resolver = self.resolver_for(season)
        home_match = resolver.resolve(game.home_team)
        away_match = resolver.resolve(game.away_team)
        home = self.store.get_rating(season, home_match.canonical_name) if home_match.resolved else None
        away = self.store.get_rating(season, away_match.canonical_name) if away_match.resolved else None
        names = {"home_name": home.canonical_name if home else None, "away_name": away.canonical_name if away else None}

        if home is None and away is None:
            logger.info(f"Skipping {game.game_id}: neither '{game.home_team}' nor '{game.away_team}' found")
            return ProcessOutcome.skipped(game, SkipReason.BOTH_NOT_FOUND, "Neither team found in ratings", **names)
        if home is None:
            logger.info(f"Skipping {game.game_id}: home team '{game.home_team}' not found")
            return ProcessOutcome.skipped(game, SkipReason.HOME_NOT_FOUND, f'Home team "{game.home_team}" not found', **names)
        if away is None:
            logger.info(f"Skipping {game.game_id}: away team '{game.away_team}' not found")
            return ProcessOutcome.skipped(game, SkipReason.AWAY_NOT_FOUND, f'Away team "{game.away_team}" not found', **names)
        if home.canonical_name == away.canonical_name:
            return ProcessOutcome.skipped(
                game,
                SkipReason.SAME_TEAM,
                f'"{game.home_team}" and "{game.away_team}" both resolve to {home.canonical_name}',
                **names,
            )

        is_neutral = game.is_neutral_site
        if is_neutral is None:
            is_neutral = infer_neutral_site(game.event_name)
        if is_neutral is None:
            return ProcessOutcome.skipped(
                game, SkipReason.NEUTRAL_SITE_AMBIGUOUS, "venue flag missing and event name is inconclusive", **names
            )

        projected = project_spread(
            home.rating,
            away.rating,
            self.config.hca,
            is_neutral,
            increment=self.config.spread_increment,
        )

        if game.closing_spread is None:
            logger.info(f"Skipping {game.game_id}: no closing line")
            return ProcessOutcome.skipped(game, SkipReason.NO_CLOSING_LINE, "No spread data available", **names)

        increment = self.config.rating_increment
        difference = round_to_increment(game.closing_spread - projected, increment)
        adjustment = calculate_adjustment(projected, game.closing_spread, increment)

        record = GameAdjustment(
            game_id=game.game_id,
            season=season,
            date=game.date,
            home_team=home.canonical_name,
            away_team=away.canonical_name,
            is_neutral_site=bool(is_neutral),
            home_rating_before=home.rating,
            away_rating_before=away.rating,
            projected_spread=projected,
            closing_spread=game.closing_spread,
            closing_source=game.closing_source or self.config.closing_source,
            difference=difference,
            adjustment=adjustment,
            home_rating_after=round_to_increment(home.rating - adjustment, increment),
            away_rating_after=round_to_increment(away.rating + adjustment, increment),
            bookmakers=tuple(game.bookmakers),
        )

        committed = self.store.commit_adjustment(
            record,
            home_version=home.games_processed,
            away_version=away.games_processed,
            updated_at=utc_now(),
        )
        if not committed:
            return ProcessOutcome.skipped(game, SkipReason.ALREADY_PROCESSED, "game already in ledger", **names)

        logger.debug(
            f"{game.game_id}: {record.away_team} at {record.home_team} projected {projected} "
            f"closed {game.closing_spread} adj {adjustment}"
        )
        return ProcessOutcome(
            game_id=game.game_id,
            adjustment=record,
            home_name=record.home_team,
            away_name=record.away_team,
        )
