"""Drives scoring runs and answers score queries."""

import asyncio
import logging
import time
from datetime import datetime, timedelta

from toolrep.consts import (
    HISTORY_DEFAULT_LIMIT,
    HISTORY_KEEP_COUNT,
    SCORING_INTERVAL_SECONDS,
    STALENESS_HOURS,
    TREND_WINDOW,
)
from toolrep.errors import PersistenceError
from toolrep.models.common import _utc_now
from toolrep.models.model_runs import ScoringRunResult
from toolrep.models.model_score import ReputationScore, ScoreBreakdown, Trend
from toolrep.models.model_tool import Tool
from toolrep.scheduler import PeriodicTask
from toolrep.scoring.calculator import ScoreCalculator
from toolrep.scoring.history import HistoryTracker
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


class ScoringOrchestrator:
    """Scores every active tool on demand and on a fixed schedule.

    Scores younger than the staleness threshold are reused unless a
    recalculation is forced. Only one run over all tools executes at a time.
    """

    def __init__(
        self,
        store: CatalogStore,
        calculator: ScoreCalculator,
        history: HistoryTracker | None = None,
        staleness_hours: float = STALENESS_HOURS,
        interval_seconds: float = SCORING_INTERVAL_SECONDS,
        keep_count: int = HISTORY_KEEP_COUNT,
    ):
        """Initialize ScoringOrchestrator.

        Args:
            store: Catalog store
            calculator: ScoreCalculator instance
            history: HistoryTracker instance (defaults to one over ``store``)
            staleness_hours: Age after which a stored score is recalculated
            interval_seconds: Period of scheduled runs
            keep_count: Score rows kept per tool after each calculation
        """
        self.store = store
        self.calculator = calculator
        self.history = history or HistoryTracker(store)
        self.staleness_hours = staleness_hours
        self.keep_count = keep_count
        self._scheduler = PeriodicTask(
            interval_seconds, self.trigger_calculation, name="scoring"
        )
        self._is_calculating = False
        self.last_result: ScoringRunResult | None = None

    @property
    def is_calculating(self) -> bool:
        return self._is_calculating

    # === LIFECYCLE ===

    def should_calculate_on_startup(self) -> bool:
        """Calculate when no score exists or the newest one is stale."""
        try:
            if self.store.count_scores() == 0:
                return True
            latest = self.store.latest_score_time()
        except PersistenceError as e:
            logger.error(f"Could not read score history, calculating: {e}")
            return True
        return latest is None or not self._is_recent(latest)

    async def start(self) -> None:
        """Calculate if scores are missing or stale, then schedule periodic runs."""
        if self.should_calculate_on_startup():
            logger.info("Scores missing or stale, calculating on startup")
            await self.trigger_calculation()
        self._scheduler.start()

    async def stop(self) -> None:
        await self._scheduler.stop()

    def _is_recent(self, calculated_at: datetime) -> bool:
        return _utc_now() - calculated_at < timedelta(hours=self.staleness_hours)

    # === CALCULATION ===

    async def calculate_score(
        self, tool: Tool, force_recalculate: bool = False
    ) -> ReputationScore:
        """Return a fresh-enough score for a tool, calculating one if needed.

        Raises:
            PersistenceError: If the new score row cannot be stored.
        """
        if not force_recalculate:
            latest = self.history.get_latest_score(tool.id)
            if latest is not None and self._is_recent(latest.calculated_at):
                logger.debug(f"Using cached score for {tool.url}")
                return latest

        details = await self.calculator.calculate_score(tool)
        score = self.history.track_score(tool.id, details.overall_score, details.factor_scores)

        try:
            self.history.prune_history(tool.id, self.keep_count)
        except PersistenceError as e:
            logger.warning(f"Failed to prune score history for {tool.url}: {e}")

        return score

    async def trigger_calculation(self, force_recalculate: bool = False) -> bool:
        """Score every active tool unless a run is already in progress.

        Returns:
            True if a run was started, False if it was skipped.
        """
        if self._is_calculating:
            logger.info("Score calculation already in progress, skipping trigger")
            return False

        self._is_calculating = True
        try:
            self.last_result = await self._calculate_all(force_recalculate)
        except Exception as e:
            logger.error(f"Scoring run failed: {e}", exc_info=True)
        finally:
            self._is_calculating = False
        return True

    async def calculate_all_scores(self, force_recalculate: bool = False) -> bool:
        """Score every active tool. Same as trigger_calculation."""
        return await self.trigger_calculation(force_recalculate)

    async def _calculate_all(self, force_recalculate: bool) -> ScoringRunResult:
        started_at = _utc_now()
        start_time = time.time()
        tools = self.store.list_tools(active_only=True)
        logger.info(f"Starting score calculation for {len(tools)} tools")

        calculated = cached = 0
        failures: dict[str, str] = {}

        async def score_one(tool: Tool) -> None:
            nonlocal calculated, cached
            try:
                previous = None if force_recalculate else self.history.get_latest_score(tool.id)
                score = await self.calculate_score(tool, force_recalculate)
            except PersistenceError as e:
                failures[tool.id] = str(e)
                logger.error(f"Failed to store score for {tool.url}: {e}")
                return
            except Exception as e:
                failures[tool.id] = str(e)
                logger.error(f"Failed to score {tool.url}: {e}")
                return
            if previous is not None and score.id == previous.id:
                cached += 1
            else:
                calculated += 1

        await asyncio.gather(*[score_one(tool) for tool in tools])

        result = ScoringRunResult(
            total=len(tools),
            calculated=calculated,
            cached=cached,
            failed=len(failures),
            failures=failures,
            started_at=started_at,
            duration_seconds=time.time() - start_time,
        )
        logger.info(
            f"Score calculation finished: {result.calculated} calculated, "
            f"{result.cached} cached, {result.failed} failed"
        )
        return result

    # === QUERIES ===

    def get_score(self, tool_id: str) -> ReputationScore | None:
        return self.history.get_latest_score(tool_id)

    def get_score_history(
        self, tool_id: str, limit: int = HISTORY_DEFAULT_LIMIT
    ) -> list[ReputationScore]:
        return self.history.get_score_history(tool_id, limit)

    async def get_score_breakdown(self, tool_id: str) -> ScoreBreakdown | None:
        """Calculate a fresh breakdown without storing it. None for unknown tools."""
        tool = self.store.get_tool(tool_id)
        if tool is None:
            return None
        details = await self.calculator.calculate_score(tool)
        return self.calculator.get_score_breakdown(details)

    def get_score_trend(self, tool_id: str) -> Trend | None:
        history = self.history.get_score_history(tool_id, TREND_WINDOW)
        return self.history.calculate_trend(history)
