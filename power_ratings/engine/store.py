"""Rating store: current ratings per team plus the append-only adjustment ledger.

All mutation goes through ``commit_adjustment``, which applies both rating
changes and the ledger row as one unit. Writers serialize on
``write_lock()``; readers never take it and see a point-in-time view.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from ..exceptions import (
    IntegrityViolationError,
    RosterAlreadyInitializedError,
    StaleRatingError,
    StoreUnavailableError,
)
from ..models.game import GameAdjustment, parse_game_date
from ..models.team import TeamRating

logger = logging.getLogger(__name__)


class RatingStore(ABC):
    """Storage boundary for ratings and the adjustment ledger."""

    def __init__(self):
        self._write_lock = threading.RLock()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        """Single-writer section. Hold it across read-compute-commit of one game."""
        with self._write_lock:
            yield

    @abstractmethod
    def initialize_season(self, season: int, ratings: List[TeamRating], reset: bool = False) -> None:
        """
        Create the season's ratings from a roster snapshot.

        Raises:
            RosterAlreadyInitializedError: the season has ratings and ``reset`` is False.
                With ``reset`` the season's ratings and ledger rows are replaced.
        """

    @abstractmethod
    def get_rating(self, season: int, name: str) -> Optional[TeamRating]:
        """Copy of one team's rating, or None."""

    @abstractmethod
    def list_ratings(self, season: int) -> List[TeamRating]:
        """Copies of every rating in the season, roster order."""

    def team_names(self, season: int) -> List[str]:
        return [r.canonical_name for r in self.list_ratings(season)]

    @abstractmethod
    def has_adjustment(self, game_id: str) -> bool:
        """True if the game already has a ledger row."""

    @abstractmethod
    def commit_adjustment(
        self,
        adjustment: GameAdjustment,
        home_version: int,
        away_version: int,
        updated_at: datetime,
    ) -> bool:
        """
        Atomically apply ``adjustment`` to both teams and append it to the ledger.

        Each rating update is conditional on the team's ``games_processed``
        still equalling the version the caller read.

        Returns:
            False if the game id is already in the ledger (nothing written)

        Raises:
            IntegrityViolationError: a team does not exist or its rating differs
                from the adjustment's before value
            StaleRatingError: a team's version moved since it was read
            StoreUnavailableError: transient failure, nothing written
        """

    @abstractmethod
    def list_adjustments(self, season: Optional[int] = None) -> List[GameAdjustment]:
        """Ledger rows ordered by game date, then commit order."""

    @abstractmethod
    def seasons(self) -> List[int]:
        """Seasons that have ratings."""


def _check_before(rating: TeamRating, before: float, version: int, side: str) -> None:
    if rating.games_processed != version:
        raise StaleRatingError(
            f"{side} team '{rating.canonical_name}' is at version {rating.games_processed}, expected {version}"
        )
    if rating.rating != before:
        raise IntegrityViolationError(
            f"{side} team '{rating.canonical_name}' rating {rating.rating} does not match ledger before value {before}"
        )


@dataclass(frozen=True)
class _MemoryState:
    ratings: Dict[int, Dict[str, TeamRating]] = field(default_factory=dict)
    adjustments: Tuple[GameAdjustment, ...] = ()
    game_ids: frozenset = frozenset()


class InMemoryRatingStore(RatingStore):
    """
    Process-local store.

    State is immutable and swapped by reference on every commit, so a reader
    holding the old state never sees half of an adjustment.
    """

    def __init__(self):
        super().__init__()
        self._state = _MemoryState()

    def initialize_season(self, season: int, ratings: List[TeamRating], reset: bool = False) -> None:
        with self.write_lock():
            state = self._state
            if state.ratings.get(season) and not reset:
                raise RosterAlreadyInitializedError(
                    f"Season {season} already has {len(state.ratings[season])} ratings; pass reset=True to replace them"
                )
            season_ratings: Dict[str, TeamRating] = {}
            for r in ratings:
                if r.canonical_name in season_ratings:
                    raise ValueError(f"Duplicate team in roster: {r.canonical_name}")
                season_ratings[r.canonical_name] = replace(r, season=season)

            kept = tuple(a for a in state.adjustments if a.season != season)
            all_ratings = dict(state.ratings)
            all_ratings[season] = season_ratings
            self._state = _MemoryState(
                ratings=all_ratings,
                adjustments=kept,
                game_ids=frozenset(a.game_id for a in kept),
            )

    def get_rating(self, season: int, name: str) -> Optional[TeamRating]:
        rating = self._state.ratings.get(season, {}).get(name)
        return replace(rating) if rating else None

    def list_ratings(self, season: int) -> List[TeamRating]:
        return [replace(r) for r in self._state.ratings.get(season, {}).values()]

    def has_adjustment(self, game_id: str) -> bool:
        return str(game_id) in self._state.game_ids

    def commit_adjustment(
        self,
        adjustment: GameAdjustment,
        home_version: int,
        away_version: int,
        updated_at: datetime,
    ) -> bool:
        with self.write_lock():
            state = self._state
            if adjustment.game_id in state.game_ids:
                return False

            season_ratings = state.ratings.get(adjustment.season, {})
            home = season_ratings.get(adjustment.home_team)
            away = season_ratings.get(adjustment.away_team)
            if home is None or away is None:
                missing = adjustment.home_team if home is None else adjustment.away_team
                raise IntegrityViolationError(f"No rating for '{missing}' in season {adjustment.season}")
            _check_before(home, adjustment.home_rating_before, home_version, "home")
            _check_before(away, adjustment.away_rating_before, away_version, "away")

            new_season = dict(season_ratings)
            new_season[home.canonical_name] = replace(
                home,
                rating=adjustment.home_rating_after,
                games_processed=home.games_processed + 1,
                last_updated=updated_at,
            )
            new_season[away.canonical_name] = replace(
                away,
                rating=adjustment.away_rating_after,
                games_processed=away.games_processed + 1,
                last_updated=updated_at,
            )
            all_ratings = dict(state.ratings)
            all_ratings[adjustment.season] = new_season
            self._state = _MemoryState(
                ratings=all_ratings,
                adjustments=state.adjustments + (adjustment,),
                game_ids=state.game_ids | {adjustment.game_id},
            )
            return True

    def list_adjustments(self, season: Optional[int] = None) -> List[GameAdjustment]:
        rows = [a for a in self._state.adjustments if season is None or a.season == season]
        return sorted(rows, key=lambda a: a.date)

    def seasons(self) -> List[int]:
        return sorted(s for s, r in self._state.ratings.items() if r)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS team_ratings (
    season INTEGER NOT NULL,
    team_name TEXT NOT NULL,
    rating REAL NOT NULL,
    initial_rating REAL NOT NULL,
    games_processed INTEGER NOT NULL DEFAULT 0,
    last_updated TEXT,
    conference TEXT,
    roster_order INTEGER NOT NULL,
    PRIMARY KEY (season, team_name)
);

CREATE TABLE IF NOT EXISTS game_adjustments (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id TEXT UNIQUE NOT NULL,
    season INTEGER NOT NULL,
    game_date TEXT NOT NULL,
    home_team TEXT NOT NULL,
    away_team TEXT NOT NULL,
    is_neutral_site INTEGER NOT NULL,
    home_rating_before REAL NOT NULL,
    away_rating_before REAL NOT NULL,
    projected_spread REAL NOT NULL,
    closing_spread REAL NOT NULL,
    closing_source TEXT NOT NULL,
    difference REAL NOT NULL,
    adjustment REAL NOT NULL,
    home_rating_after REAL NOT NULL,
    away_rating_after REAL NOT NULL,
    bookmakers TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_adjustments_season_date
ON game_adjustments(season, game_date);
"""


class SqliteRatingStore(RatingStore):
    """
    SQLite-backed store.

    Every commit is one ``BEGIN IMMEDIATE`` transaction; a failure anywhere
    before ``COMMIT`` rolls back both rating rows and the ledger row.
    Readers open their own connection and read committed data only.
    """

    def __init__(self, db_path: str, timeout: float = 10.0):
        super().__init__()
        if str(db_path) == ":memory:":
            raise ValueError("SqliteRatingStore needs a file path; use InMemoryRatingStore instead")
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
        except sqlite3.OperationalError as e:
            raise StoreUnavailableError(f"Could not open ratings database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.OperationalError as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StoreUnavailableError(f"Ratings database unavailable: {e}") from e
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    @staticmethod
    def _row_to_rating(row: sqlite3.Row) -> TeamRating:
        return TeamRating(
            canonical_name=row["team_name"],
            rating=row["rating"],
            initial_rating=row["initial_rating"],
            games_processed=row["games_processed"],
            last_updated=datetime.fromisoformat(row["last_updated"]) if row["last_updated"] else None,
            conference=row["conference"],
            season=row["season"],
        )

    @staticmethod
    def _row_to_adjustment(row: sqlite3.Row) -> GameAdjustment:
        data = dict(row)
        data["date"] = parse_game_date(data.pop("game_date"))
        data["bookmakers"] = json.loads(data["bookmakers"]) if data.get("bookmakers") else []
        return GameAdjustment.from_dict(data)

    def initialize_season(self, season: int, ratings: List[TeamRating], reset: bool = False) -> None:
        with self.write_lock(), self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            count = conn.execute("SELECT COUNT(*) FROM team_ratings WHERE season = ?", (season,)).fetchone()[0]
            if count and not reset:
                conn.execute("ROLLBACK")
                raise RosterAlreadyInitializedError(
                    f"Season {season} already has {count} ratings; pass reset=True to replace them"
                )
            conn.execute("DELETE FROM game_adjustments WHERE season = ?", (season,))
            conn.execute("DELETE FROM team_ratings WHERE season = ?", (season,))
            try:
                conn.executemany(
                    """
                    INSERT INTO team_ratings
                        (season, team_name, rating, initial_rating, games_processed, last_updated, conference, roster_order)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            season,
                            r.canonical_name,
                            r.rating,
                            r.initial_rating,
                            r.games_processed,
                            r.last_updated.isoformat() if r.last_updated else None,
                            r.conference,
                            i,
                        )
                        for i, r in enumerate(ratings)
                    ],
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Duplicate team in roster: {e}") from e
            conn.execute("COMMIT")
        logger.info(f"Initialized {len(ratings)} ratings for season {season}")

    def get_rating(self, season: int, name: str) -> Optional[TeamRating]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM team_ratings WHERE season = ? AND team_name = ?", (season, name)
            ).fetchone()
        return self._row_to_rating(row) if row else None

    def list_ratings(self, season: int) -> List[TeamRating]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM team_ratings WHERE season = ? ORDER BY roster_order", (season,)
            ).fetchall()
        return [self._row_to_rating(r) for r in rows]

    def has_adjustment(self, game_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM game_adjustments WHERE game_id = ?", (str(game_id),)).fetchone()
        return row is not None

    def commit_adjustment(
        self,
        adjustment: GameAdjustment,
        home_version: int,
        away_version: int,
        updated_at: datetime,
    ) -> bool:
        a = adjustment
        with self.write_lock(), self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            if conn.execute("SELECT 1 FROM game_adjustments WHERE game_id = ?", (a.game_id,)).fetchone():
                conn.execute("ROLLBACK")
                return False

            sides = (
                ("home", a.home_team, a.home_rating_before, a.home_rating_after, home_version),
                ("away", a.away_team, a.away_rating_before, a.away_rating_after, away_version),
            )
            for side, team, before, after, version in sides:
                current = conn.execute(
                    "SELECT * FROM team_ratings WHERE season = ? AND team_name = ?", (a.season, team)
                ).fetchone()
                if current is None:
                    raise IntegrityViolationError(f"No rating for '{team}' in season {a.season}")
                _check_before(self._row_to_rating(current), before, version, side)
                cur = conn.execute(
                    """
                    UPDATE team_ratings
                    SET rating = ?, games_processed = games_processed + 1, last_updated = ?
                    WHERE season = ? AND team_name = ? AND games_processed = ?
                    """,
                    (after, updated_at.isoformat(), a.season, team, version),
                )
                if cur.rowcount != 1:
                    raise StaleRatingError(f"{side} team '{team}' changed during commit")

            conn.execute(
                """
                INSERT INTO game_adjustments (
                    game_id, season, game_date, home_team, away_team, is_neutral_site,
                    home_rating_before, away_rating_before, projected_spread, closing_spread,
                    closing_source, difference, adjustment, home_rating_after, away_rating_after,
                    bookmakers, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    a.game_id,
                    a.season,
                    a.date.isoformat(),
                    a.home_team,
                    a.away_team,
                    int(a.is_neutral_site),
                    a.home_rating_before,
                    a.away_rating_before,
                    a.projected_spread,
                    a.closing_spread,
                    a.closing_source.value,
                    a.difference,
                    a.adjustment,
                    a.home_rating_after,
                    a.away_rating_after,
                    json.dumps(list(a.bookmakers)),
                    updated_at.isoformat(),
                ),
            )
            conn.execute("COMMIT")
        return True

    def list_adjustments(self, season: Optional[int] = None) -> List[GameAdjustment]:
        query = "SELECT * FROM game_adjustments"
        params: Tuple = ()
        if season is not None:
            query += " WHERE season = ?"
            params = (season,)
        query += " ORDER BY game_date, seq"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_adjustment(r) for r in rows]

    def seasons(self) -> List[int]:
        with self._connect() as conn:
            rows = conn.execute("SELECT DISTINCT season FROM team_ratings ORDER BY season").fetchall()
        return [r[0] for r in rows]
