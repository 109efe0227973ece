"""Rating engine: projection, closing lines, store, processor and batch runner."""

from .lines import extract_closing_spread
from .processor import AdjustmentProcessor, ProcessOutcome
from .projection import calculate_adjustment, project_spread
from .runner import BatchGameRunner, BatchResult
from .service import PowerRatingsService
from .store import InMemoryRatingStore, RatingStore, SqliteRatingStore

__all__ = [
    "extract_closing_spread",
    "AdjustmentProcessor",
    "ProcessOutcome",
    "calculate_adjustment",
    "project_spread",
    "BatchGameRunner",
    "BatchResult",
    "PowerRatingsService",
    "InMemoryRatingStore",
    "RatingStore",
    "SqliteRatingStore",
]
