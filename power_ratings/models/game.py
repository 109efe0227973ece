"""Game, adjustment and closing-line models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from ..config import ClosingLineSource
from .team import TeamRating


def parse_game_date(value) -> datetime:
    """Parse an ISO-8601 date/datetime (``Z`` suffix allowed) into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_neutral_flag(value) -> Optional[bool]:
    """Feed venue flag: a bool, "true"/"false" in any case, or None when unknown."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"is_neutral_site must be a boolean, got {value!r}")


def _first(data: dict, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


class SkipReason(str, Enum):
    """Machine-readable reasons a game was not adjusted."""

    ALREADY_PROCESSED = "already_processed"
    HOME_NOT_FOUND = "home_not_found"
    AWAY_NOT_FOUND = "away_not_found"
    BOTH_NOT_FOUND = "both_not_found"
    NEUTRAL_SITE_AMBIGUOUS = "neutral_site_ambiguous"
    NO_CLOSING_LINE = "no_closing_line"
    SAME_TEAM = "same_team"


@dataclass
class GameToProcess:
    """A finished game handed to the engine, with its closing line already resolved (or None)."""

    game_id: str
    date: datetime
    home_team: str
    away_team: str
    is_neutral_site: Optional[bool] = False
    closing_spread: Optional[float] = None
    closing_source: Optional[ClosingLineSource] = None
    season: Optional[int] = None
    event_name: Optional[str] = None
    bookmakers: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.game_id:
            raise ValueError("game_id is required")
        self.game_id = str(self.game_id)
        self.date = parse_game_date(self.date)
        self.is_neutral_site = parse_neutral_flag(self.is_neutral_site)
        if self.closing_spread is not None:
            self.closing_spread = float(self.closing_spread)
        if self.closing_source is not None:
            self.closing_source = ClosingLineSource.parse(self.closing_source)

    @classmethod
    def from_dict(cls, data: dict) -> "GameToProcess":
        """Accepts both snake_case and the camelCase keys used by the schedule feed."""
        neutral = _first(data, "is_neutral_site", "isNeutralSite", "neutral_site")
        season = _first(data, "season")
        return cls(
            game_id=_first(data, "game_id", "gameId", "id"),
            date=_first(data, "date", "game_date", "commence_time"),
            home_team=_first(data, "home_team", "homeTeamRawName", "homeTeam"),
            away_team=_first(data, "away_team", "awayTeamRawName", "awayTeam"),
            is_neutral_site=neutral,
            closing_spread=_first(data, "closing_spread", "closingSpread"),
            closing_source=_first(data, "closing_source", "closingSource"),
            season=int(season) if season is not None else None,
            event_name=_first(data, "event_name", "eventName", "event"),
            bookmakers=list(_first(data, "bookmakers", default=[]) or []),
        )


@dataclass(frozen=True)
class GameAdjustment:
    """Immutable ledger entry for one processed game."""

    game_id: str
    season: int
    date: datetime
    home_team: str
    away_team: str
    is_neutral_site: bool
    home_rating_before: float
    away_rating_before: float
    projected_spread: float
    closing_spread: float
    closing_source: ClosingLineSource
    difference: float
    adjustment: float
    home_rating_after: float
    away_rating_after: float
    bookmakers: tuple = ()

    def involves(self, team: str) -> bool:
        return team in (self.home_team, self.away_team)

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "season": self.season,
            "date": self.date.isoformat(),
            "home_team": self.home_team,
            "away_team": self.away_team,
            "is_neutral_site": self.is_neutral_site,
            "home_rating_before": self.home_rating_before,
            "away_rating_before": self.away_rating_before,
            "projected_spread": self.projected_spread,
            "closing_spread": self.closing_spread,
            "closing_source": self.closing_source.value,
            "difference": self.difference,
            "adjustment": self.adjustment,
            "home_rating_after": self.home_rating_after,
            "away_rating_after": self.away_rating_after,
            "bookmakers": list(self.bookmakers),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameAdjustment":
        return cls(
            game_id=str(data["game_id"]),
            season=int(data["season"]),
            date=parse_game_date(data["date"]),
            home_team=data["home_team"],
            away_team=data["away_team"],
            is_neutral_site=bool(data["is_neutral_site"]),
            home_rating_before=float(data["home_rating_before"]),
            away_rating_before=float(data["away_rating_before"]),
            projected_spread=float(data["projected_spread"]),
            closing_spread=float(data["closing_spread"]),
            closing_source=ClosingLineSource.parse(data["closing_source"]),
            difference=float(data["difference"]),
            adjustment=float(data["adjustment"]),
            home_rating_after=float(data["home_rating_after"]),
            away_rating_after=float(data["away_rating_after"]),
            bookmakers=tuple(data.get("bookmakers") or ()),
        )


@dataclass
class ClosingLineResult:
    """Outcome of applying a closing-line policy to one game's quotes.

    ``spread`` is None when no usable line exists; that is a normal outcome.
    """

    spread: Optional[float]
    source: ClosingLineSource
    bookmakers: List[str] = field(default_factory=list)
    timestamp: Optional[datetime] = None

    @property
    def available(self) -> bool:
        return self.spread is not None


@dataclass
class ProjectionResult:
    home_team: str
    away_team: str
    home_rating: float
    away_rating: float
    projected_spread: float
    is_neutral_site: bool
    hca_applied: float

    def to_dict(self) -> dict:
        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "home_rating": self.home_rating,
            "away_rating": self.away_rating,
            "projected_spread": self.projected_spread,
            "is_neutral_site": self.is_neutral_site,
            "hca_applied": self.hca_applied,
        }


@dataclass
class RatingsSnapshot:
    """Point-in-time view of a season's ratings and ledger."""

    as_of: datetime
    season: int
    hca: float
    closing_source: ClosingLineSource
    ratings: List[TeamRating]
    adjustments: List[GameAdjustment]

    @property
    def games_processed(self) -> int:
        return len(self.adjustments)

    def to_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat(),
            "season": self.season,
            "hca": self.hca,
            "closing_source": self.closing_source.value,
            "games_processed": self.games_processed,
            "ratings": [r.to_dict() for r in self.ratings],
            "adjustments": [a.to_dict() for a in self.adjustments],
        }
