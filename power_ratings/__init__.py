"""Market-adjusted power ratings."""

from .config import ClosingLineSource, RatingsConfig, load_config
from .engine.service import PowerRatingsService
from .engine.store import InMemoryRatingStore, SqliteRatingStore

__all__ = [
    "ClosingLineSource",
    "RatingsConfig",
    "load_config",
    "PowerRatingsService",
    "InMemoryRatingStore",
    "SqliteRatingStore",
]
