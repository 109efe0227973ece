"""Read/write facade over the rating engine for API and CLI callers."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from ..config import RatingsConfig
from ..data.loader import normalize_roster_rows
from ..data.overrides import OverrideTable
from ..exceptions import IntegrityViolationError
from ..models.game import GameAdjustment, GameToProcess, ProjectionResult, RatingsSnapshot
from ..models.team import TeamRating, utc_now
from .lines import attach_closing_lines
from .processor import AdjustmentProcessor
from .projection import project_spread, round_to_increment
from .runner import BatchGameRunner, BatchResult
from .store import RatingStore

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "game_id",
    "season",
    "date",
    "home_team",
    "away_team",
    "is_neutral_site",
    "home_rating_before",
    "away_rating_before",
    "projected_spread",
    "closing_spread",
    "closing_source",
    "difference",
    "adjustment",
    "home_rating_after",
    "away_rating_after",
    "bookmakers",
]


def _same(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=0.0, abs_tol=1e-9)


class PowerRatingsService:
    """
    Entry point used by the presentation layer.

    Writes go through one ``AdjustmentProcessor`` and ``BatchGameRunner``;
    reads hit the store directly and never take the write lock.
    """

    def __init__(
        self,
        store: RatingStore,
        config: Optional[RatingsConfig] = None,
        overrides: Optional[OverrideTable] = None,
    ):
        self.store = store
        self.config = config or RatingsConfig()
        self.overrides = overrides if overrides is not None else OverrideTable()
        self.processor = AdjustmentProcessor(store, self.config, self.overrides)
        self.runner = BatchGameRunner(self.processor)

    def _season(self, season: Optional[int]) -> int:
        return self.config.season if season is None else season

    def initialize_ratings(self, rows: Sequence[Dict], season: Optional[int] = None, reset: bool = False) -> int:
        """
        Seed a season from a roster snapshot.

        Args:
            rows: ``{"team_name", "rating_seed", "conference"}`` rows (camelCase accepted)
            season: Defaults to the configured season
            reset: Replace an already-populated season (drops its ledger)

        Returns:
            Number of teams created
        """
        season = self._season(season)
        # Seeds sit on the rating grid, like every after-value.
        increment = self.config.rating_increment
        ratings = [
            TeamRating.seed(
                row["team_name"],
                round_to_increment(row["rating_seed"], increment),
                season,
                row.get("conference"),
            )
            for row in normalize_roster_rows(list(rows))
        ]
        if not ratings:
            raise ValueError("roster snapshot has no usable rows")
        if reset:
            logger.warning(f"Resetting season {season}: existing ratings and adjustments are replaced")
        self.store.initialize_season(season, ratings, reset=reset)
        return len(ratings)

    def get_team(self, name: str, season: Optional[int] = None) -> Optional[TeamRating]:
        """Rating row for any feed spelling of a team, or None if it does not resolve."""
        season = self._season(season)
        match = self.processor.resolver_for(season).resolve(name)
        if not match.resolved:
            return None
        return self.store.get_rating(season, match.canonical_name)

    def get_current_rating(self, canonical_name: str, season: Optional[int] = None) -> Optional[float]:
        rating = self.store.get_rating(self._season(season), canonical_name)
        return rating.rating if rating else None

    def project(
        self,
        home_team: str,
        away_team: str,
        hca: Optional[float] = None,
        is_neutral_site: bool = False,
        season: Optional[int] = None,
    ) -> Optional[ProjectionResult]:
        """
        Project a future game from current ratings.

        Returns:
            ProjectionResult, or None if either team does not resolve
        """
        home = self.get_team(home_team, season)
        away = self.get_team(away_team, season)
        if home is None or away is None:
            return None

        hca = self.config.hca if hca is None else hca
        spread = project_spread(
            home.rating,
            away.rating,
            hca,
            is_neutral_site,
            increment=self.config.spread_increment,
        )
        return ProjectionResult(
            home_team=home.canonical_name,
            away_team=away.canonical_name,
            home_rating=home.rating,
            away_rating=away.rating,
            projected_spread=spread,
            is_neutral_site=is_neutral_site,
            hca_applied=0.0 if is_neutral_site else hca,
        )

    def process_games(
        self,
        games: Iterable[Union[GameToProcess, dict]],
        odds_games: Optional[Sequence[Dict]] = None,
        limit: Optional[int] = None,
    ) -> BatchResult:
        """
        Run a batch of finished games through the engine.

        Args:
            games: Games in any order
            odds_games: Optional odds payloads; games without a closing spread
                get one from the configured closing-line policy
            limit: Stop after this many adjustments

        Returns:
            BatchResult
        """
        parsed = [g if isinstance(g, GameToProcess) else GameToProcess.from_dict(g) for g in games]
        if odds_games:
            by_season: Dict[int, List[GameToProcess]] = defaultdict(list)
            for game in parsed:
                by_season[self.processor.season_of(game)].append(game)
            attached = sum(
                attach_closing_lines(season_games, odds_games, self.processor.resolver_for(season), self.config)
                for season, season_games in by_season.items()
            )
            logger.info(f"Attached {attached} closing lines from {len(odds_games)} odds payloads")
        return self.runner.run(parsed, limit=limit)

    def get_adjustment_history(self, season: Optional[int] = None, team: Optional[str] = None) -> List[GameAdjustment]:
        """Ledger in date order, optionally narrowed to one season and/or one canonical team."""
        rows = self.store.list_adjustments(season)
        if team is not None:
            rows = [a for a in rows if a.involves(team)]
        return rows

    def snapshot(self, season: Optional[int] = None) -> RatingsSnapshot:
        season = self._season(season)
        ratings = sorted(self.store.list_ratings(season), key=lambda r: r.rating, reverse=True)
        return RatingsSnapshot(
            as_of=utc_now(),
            season=season,
            hca=self.config.hca,
            closing_source=self.config.closing_source,
            ratings=ratings,
            adjustments=self.store.list_adjustments(season),
        )

    def stats(self, season: Optional[int] = None) -> Dict:
        season = self._season(season)
        adjustments = self.store.list_adjustments(season)
        return {
            "season": season,
            "teams_count": len(self.store.list_ratings(season)),
            "games_processed": len(adjustments),
            "first_game_date": adjustments[0].date.isoformat() if adjustments else None,
            "last_game_date": adjustments[-1].date.isoformat() if adjustments else None,
        }

    def verify_ledger(self, season: Optional[int] = None) -> int:
        """
        Replay the season's ledger from the initial ratings and compare with the store.

        Every row's before values must equal the replayed ratings, its after
        values must follow from its adjustment, and the replay must end at
        the store's current ratings and game counts.

        Returns:
            Number of ledger rows checked

        Raises:
            IntegrityViolationError: on the first disagreement
        """
        season = self._season(season)
        ratings = {r.canonical_name: r for r in self.store.list_ratings(season)}
        running = {name: r.initial_rating for name, r in ratings.items()}
        counts: Dict[str, int] = defaultdict(int)

        adjustments = self.store.list_adjustments(season)
        for adj in adjustments:
            for team in (adj.home_team, adj.away_team):
                if team not in running:
                    raise IntegrityViolationError(f"Ledger row {adj.game_id} references unknown team '{team}'")
            if not _same(running[adj.home_team], adj.home_rating_before):
                raise IntegrityViolationError(
                    f"{adj.game_id}: home before {adj.home_rating_before} != replayed {running[adj.home_team]}"
                )
            if not _same(running[adj.away_team], adj.away_rating_before):
                raise IntegrityViolationError(
                    f"{adj.game_id}: away before {adj.away_rating_before} != replayed {running[adj.away_team]}"
                )
            if not _same(adj.home_rating_before - adj.adjustment, adj.home_rating_after):
                raise IntegrityViolationError(f"{adj.game_id}: home after does not follow from adjustment")
            if not _same(adj.away_rating_before + adj.adjustment, adj.away_rating_after):
                raise IntegrityViolationError(f"{adj.game_id}: away after does not follow from adjustment")

            running[adj.home_team] = adj.home_rating_after
            running[adj.away_team] = adj.away_rating_after
            counts[adj.home_team] += 1
            counts[adj.away_team] += 1

        for name, rating in ratings.items():
            if not _same(rating.rating, running[name]):
                raise IntegrityViolationError(f"{name}: store rating {rating.rating} != replayed {running[name]}")
            if rating.games_processed != counts[name]:
                raise IntegrityViolationError(
                    f"{name}: games_processed {rating.games_processed} != {counts[name]} ledger rows"
                )

        logger.info(f"Ledger for season {season} verified: {len(adjustments)} adjustments")
        return len(adjustments)

    def history_frame(self, season: Optional[int] = None) -> pd.DataFrame:
        """Ledger as a DataFrame, one row per adjustment, in date order."""
        rows = [a.to_dict() for a in self.store.list_adjustments(season)]
        df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
        if not df.empty:
            df["date"] = pd.to_datetime(df["date"], utc=True)
            df["bookmakers"] = df["bookmakers"].apply(lambda books: ", ".join(books))
        return df
