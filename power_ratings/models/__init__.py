"""Rating, game and adjustment models."""

from .game import ClosingLineResult, GameAdjustment, GameToProcess, ProjectionResult, RatingsSnapshot, SkipReason
from .team import TeamRating

__all__ = [
    "ClosingLineResult",
    "GameAdjustment",
    "GameToProcess",
    "ProjectionResult",
    "RatingsSnapshot",
    "SkipReason",
    "TeamRating",
]
