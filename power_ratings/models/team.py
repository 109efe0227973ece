"""Team rating model."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TeamRating:
    """Current neutral-court rating for one team in one season."""

    canonical_name: str
    rating: float
    initial_rating: float
    games_processed: int = 0
    last_updated: Optional[datetime] = None
    conference: Optional[str] = None
    season: int = 2026

    def __post_init__(self):
        """Validate rating data."""
        if not self.canonical_name or not self.canonical_name.strip():
            raise ValueError("canonical_name must be a non-empty string")

        if self.games_processed < 0:
            raise ValueError(f"games_processed must be non-negative, got {self.games_processed}")

    @classmethod
    def seed(cls, name: str, rating: float, season: int, conference: Optional[str] = None) -> "TeamRating":
        """Create a fresh rating from a preseason baseline value."""
        return cls(
            canonical_name=name,
            rating=float(rating),
            initial_rating=float(rating),
            games_processed=0,
            last_updated=utc_now(),
            conference=conference,
            season=season,
        )

    @property
    def net_change(self) -> float:
        return self.rating - self.initial_rating

    def to_dict(self) -> dict:
        """Convert rating to dictionary."""
        return {
            "canonical_name": self.canonical_name,
            "rating": self.rating,
            "initial_rating": self.initial_rating,
            "games_processed": self.games_processed,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "conference": self.conference,
            "season": self.season,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamRating":
        """Create rating from dictionary."""
        last_updated = data.get("last_updated")
        if isinstance(last_updated, str):
            last_updated = datetime.fromisoformat(last_updated)
        return cls(
            canonical_name=data["canonical_name"],
            rating=float(data["rating"]),
            initial_rating=float(data.get("initial_rating", data["rating"])),
            games_processed=int(data.get("games_processed", 0)),
            last_updated=last_updated,
            conference=data.get("conference"),
            season=int(data.get("season", 2026)),
        )
