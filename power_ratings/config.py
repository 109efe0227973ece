"""Ratings configuration and bookmaker rosters."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional


class ClosingLineSource(str, Enum):
    """Policy used to pick a single closing spread out of a set of book quotes."""

    SHARP_BOOK = "sharp_book"
    CONSENSUS_AVERAGE = "consensus_average"

    @classmethod
    def parse(cls, value) -> "ClosingLineSource":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        aliases = {
            "pinnacle": cls.SHARP_BOOK,
            "sharp": cls.SHARP_BOOK,
            "us_average": cls.CONSENSUS_AVERAGE,
            "consensus": cls.CONSENSUS_AVERAGE,
        }
        if key in aliases:
            return aliases[key]
        return cls(key)


SHARP_BOOKMAKER = {"key": "pinnacle", "title": "Pinnacle", "region": "eu"}

CONSENSUS_BOOKMAKERS = [
    {"key": "draftkings", "title": "DraftKings"},
    {"key": "fanduel", "title": "FanDuel"},
    {"key": "betmgm", "title": "BetMGM"},
    {"key": "betrivers", "title": "BetRivers"},
    {"key": "williamhill_us", "title": "Caesars"},
]

CONSENSUS_BOOKMAKER_KEYS = [b["key"] for b in CONSENSUS_BOOKMAKERS]


@dataclass
class RatingsConfig:
    season: int = 2026
    hca: float = 2.5
    closing_source: ClosingLineSource = ClosingLineSource.SHARP_BOOK

    rating_decimal_places: int = 2
    spread_decimal_places: int = 1
    consensus_increment: float = 0.5

    sharp_book: str = SHARP_BOOKMAKER["key"]
    consensus_books: List[str] = field(default_factory=lambda: list(CONSENSUS_BOOKMAKER_KEYS))

    def __post_init__(self):
        self.closing_source = ClosingLineSource.parse(self.closing_source)
        if self.hca < 0:
            raise ValueError(f"hca must be non-negative, got {self.hca}")
        if self.consensus_increment <= 0:
            raise ValueError(f"consensus_increment must be positive, got {self.consensus_increment}")

    @property
    def rating_increment(self) -> float:
        return 10.0 ** -self.rating_decimal_places

    @property
    def spread_increment(self) -> float:
        return 10.0 ** -self.spread_decimal_places

    def to_dict(self) -> dict:
        data = asdict(self)
        data["closing_source"] = self.closing_source.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RatingsConfig":
        known = set(cls.__dataclass_fields__)
        kwargs = {k: v for k, v in (data or {}).items() if k in known}
        return cls(**kwargs)


def load_config(path: Optional[str] = None) -> RatingsConfig:
    """Load config from an optional JSON file, then apply environment overrides."""
    data: dict = {}
    if path:
        with open(path, "r") as f:
            data = json.load(f)

    hca = os.getenv("POWER_RATINGS_HCA")
    if hca:
        data["hca"] = float(hca)
    season = os.getenv("POWER_RATINGS_SEASON")
    if season:
        data["season"] = int(season)
    source = os.getenv("POWER_RATINGS_CLOSING_SOURCE")
    if source:
        data["closing_source"] = source

    return RatingsConfig.from_dict(data)
