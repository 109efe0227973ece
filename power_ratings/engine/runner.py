"""Batch game runner: chronological, one-at-a-time processing with a per-reason report."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from ..exceptions import IntegrityViolationError, StaleRatingError, StoreUnavailableError
from ..models.game import GameAdjustment, GameToProcess, SkipReason
from .processor import AdjustmentProcessor

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE = "store_unavailable"
STALE_RATING = "stale_rating"


@dataclass
class SkippedGame:
    game_id: str
    reason: str
    detail: str = ""
    home_team: str = ""
    away_team: str = ""

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "reason": self.reason,
            "detail": self.detail,
            "home_team": self.home_team,
            "away_team": self.away_team,
        }


@dataclass
class BatchResult:
    """Outcome of one batch: adjusted games, data-quality skips, and transient failures."""

    processed: List[GameAdjustment] = field(default_factory=list)
    skipped: List[SkippedGame] = field(default_factory=list)
    failed: List[SkippedGame] = field(default_factory=list)

    def counts_by_reason(self) -> Dict[str, int]:
        counts = Counter(s.reason for s in self.skipped)
        counts.update(f.reason for f in self.failed)
        return dict(sorted(counts.items()))

    def unresolved_names(self) -> List[str]:
        """Feed names an operator should add overrides for, in first-seen order."""
        names: List[str] = []
        for s in self.skipped:
            sides = []
            if s.reason in (SkipReason.HOME_NOT_FOUND.value, SkipReason.BOTH_NOT_FOUND.value):
                sides.append(s.home_team)
            if s.reason in (SkipReason.AWAY_NOT_FOUND.value, SkipReason.BOTH_NOT_FOUND.value):
                sides.append(s.away_team)
            for name in sides:
                if name and name not in names:
                    names.append(name)
        return names

    def summary(self) -> dict:
        return {
            "processed": len(self.processed),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "by_reason": self.counts_by_reason(),
            "unresolved_names": self.unresolved_names(),
        }

    def to_dict(self) -> dict:
        out = self.summary()
        out["skipped_games"] = [s.to_dict() for s in self.skipped]
        out["failed_games"] = [f.to_dict() for f in self.failed]
        return out


def chronological(games: Iterable[GameToProcess]) -> List[GameToProcess]:
    """Sort by game date; ties keep input order (``sorted`` is stable)."""
    return sorted(games, key=lambda g: g.date)


class BatchGameRunner:
    """
    Feeds a batch of games to the processor strictly in date order.

    Ratings depend on every earlier adjustment, so input order never
    matters: the runner always re-sorts. Re-submitting overlapping batches
    is safe because already-processed games skip.
    """

    def __init__(self, processor: AdjustmentProcessor):
        self.processor = processor

    def run(self, games: Iterable[Union[GameToProcess, dict]], limit: Optional[int] = None) -> BatchResult:
        """
        Process a batch.

        Args:
            games: Games in any order (dicts are parsed with ``GameToProcess.from_dict``)
            limit: Stop after this many games have been adjusted

        Returns:
            BatchResult

        Raises:
            IntegrityViolationError: the batch stops; earlier commits stand
        """
        parsed = [g if isinstance(g, GameToProcess) else GameToProcess.from_dict(g) for g in games]
        result = BatchResult()

        for game in chronological(parsed):
            if limit is not None and len(result.processed) >= limit:
                break
            try:
                outcome = self.processor.process(game)
            except StoreUnavailableError as e:
                logger.warning(f"Store unavailable while processing {game.game_id}: {e}")
                result.failed.append(
                    SkippedGame(game.game_id, STORE_UNAVAILABLE, str(e), game.home_team, game.away_team)
                )
                continue
            except StaleRatingError as e:
                logger.warning(f"Rating moved under {game.game_id}, nothing written: {e}")
                result.failed.append(
                    SkippedGame(game.game_id, STALE_RATING, str(e), game.home_team, game.away_team)
                )
                continue
            except IntegrityViolationError as e:
                logger.error(f"Integrity violation on game {game.game_id}: {e}")
                raise

            if outcome.processed:
                result.processed.append(outcome.adjustment)
            else:
                result.skipped.append(
                    SkippedGame(
                        game_id=game.game_id,
                        reason=outcome.skip_reason.value,
                        detail=outcome.detail,
                        home_team=game.home_team,
                        away_team=game.away_team,
                    )
                )

        logger.info(
            f"Batch finished: {len(result.processed)} processed, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed"
        )
        return result
