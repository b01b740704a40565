"""Append-only score history with trend detection and pruning."""

import logging

from toolrep.consts import (
    FACTOR_NAMES,
    HISTORY_DEFAULT_LIMIT,
    HISTORY_KEEP_COUNT,
    TREND_THRESHOLD,
)
from toolrep.models.model_score import FactorResult, ReputationScore, Trend
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


class HistoryTracker:
    """Stores one immutable score row per scoring run per tool."""

    def __init__(self, store: CatalogStore, trend_threshold: float = TREND_THRESHOLD):
        self.store = store
        self.trend_threshold = trend_threshold

    def track_score(
        self,
        tool_id: str,
        overall_score: int,
        factor_scores: dict[str, FactorResult] | None = None,
    ) -> ReputationScore:
        """Append a score row stamped with the current time.

        Factor ``X`` is stored in column ``X_score``. Factors without a
        column are ignored.

        Raises:
            PersistenceError: If the store write fails.
        """
        columns = {
            f"{name}_score": result.score
            for name, result in (factor_scores or {}).items()
            if name in FACTOR_NAMES
        }
        score = ReputationScore(tool_id=tool_id, overall_score=overall_score, **columns)
        self.store.insert_score(score)
        logger.debug(f"Tracked score {overall_score} for tool {tool_id}")
        return score

    def get_latest_score(self, tool_id: str) -> ReputationScore | None:
        rows = self.store.list_scores(tool_id, limit=1)
        return rows[0] if rows else None

    def get_score_history(
        self, tool_id: str, limit: int = HISTORY_DEFAULT_LIMIT
    ) -> list[ReputationScore]:
        """Return up to ``limit`` rows, most recent first."""
        return self.store.list_scores(tool_id, limit=limit)

    def calculate_trend(self, history: list[ReputationScore]) -> Trend | None:
        """Compare the two most recent rows of a most-recent-first history.

        Returns:
            None with fewer than two rows, otherwise the direction of the change.
        """
        if len(history) < 2:
            return None
        latest, previous = history[0], history[1]
        difference = latest.overall_score - previous.overall_score
        if difference > self.trend_threshold:
            return Trend.POSITIVE
        if difference < -self.trend_threshold:
            return Trend.NEGATIVE
        return Trend.NEUTRAL

    def prune_history(self, tool_id: str, keep_count: int = HISTORY_KEEP_COUNT) -> int:
        """Delete all but the ``keep_count`` most recent rows of a tool.

        Returns:
            Number of rows deleted.
        """
        rows = self.store.list_scores(tool_id)
        if len(rows) <= keep_count:
            return 0
        removed = self.store.delete_scores([row.id for row in rows[keep_count:]])
        logger.debug(f"Pruned {removed} score rows for tool {tool_id}")
        return removed
