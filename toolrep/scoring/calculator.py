"""Combines factor results into one confidence-weighted overall score."""

import asyncio
import logging
from datetime import datetime

from toolrep.analyzers.base import FactorAnalyzer, round_half_up
from toolrep.models.common import _utc_now
from toolrep.models.model_score import (
    FactorBreakdown,
    FactorResult,
    ScoreBreakdown,
    ScoreDetails,
)
from toolrep.models.model_tool import Tool

logger = logging.getLogger(__name__)

WEIGHT_SUM_TOLERANCE = 0.001


def default_weights(analyzers: list[FactorAnalyzer]) -> dict[str, float]:
    """Analyzer default weights, rescaled to sum to 1 when they don't."""
    weights = {analyzer.name: analyzer.weight for analyzer in analyzers}
    total = sum(weights.values())
    if total > 0 and abs(total - 1) > WEIGHT_SUM_TOLERANCE:
        weights = {name: weight / total for name, weight in weights.items()}
    return weights


class ScoreCalculator:
    """Runs every analyzer on a tool and averages their scores.

    Each factor contributes ``score * weight * confidence`` and the sum is
    divided by the total ``weight * confidence``, so a zero-confidence factor
    has no influence at all.
    """

    def __init__(
        self,
        analyzers: list[FactorAnalyzer],
        factor_weights: dict[str, float] | None = None,
    ):
        """Initialize ScoreCalculator.

        Args:
            analyzers: Factor analyzers to run
            factor_weights: Weight overrides used verbatim. A factor missing
                from the overrides weighs 0. None uses analyzer defaults.
        """
        self.analyzers = analyzers
        if factor_weights is not None:
            self.factor_weights = dict(factor_weights)
        else:
            self.factor_weights = default_weights(analyzers)

    def weight_of(self, name: str) -> float:
        return self.factor_weights.get(name, 0.0)

    async def _run_analyzer(
        self, analyzer: FactorAnalyzer, tool: Tool, current_time: datetime
    ) -> FactorResult:
        try:
            return await analyzer.analyze(tool, current_time)
        except Exception as e:
            logger.error(f"Analyzer {analyzer.name} raised for {tool.url}: {e}")
            return FactorResult.failed(f"Error in analyzer {analyzer.name}", e)

    async def calculate_score(
        self, tool: Tool, current_time: datetime | None = None
    ) -> ScoreDetails:
        """Calculate the overall score for a tool.

        Args:
            tool: The tool to score
            current_time: Reference time passed to analyzers (defaults to now)

        Returns:
            ScoreDetails with every factor result and the rounded overall score.
        """
        if current_time is None:
            current_time = _utc_now()

        results = await asyncio.gather(
            *[self._run_analyzer(a, tool, current_time) for a in self.analyzers]
        )
        factor_scores = {a.name: r for a, r in zip(self.analyzers, results)}

        weighted_sum = 0.0
        total_weight = 0.0
        for name, result in factor_scores.items():
            adjusted_weight = self.weight_of(name) * result.confidence
            weighted_sum += result.score * adjusted_weight
            total_weight += adjusted_weight

        overall = round_half_up(weighted_sum / total_weight) if total_weight > 0 else 0
        logger.debug(f"Scored {tool.url}: {overall}")
        return ScoreDetails(
            overall_score=overall,
            factor_scores=factor_scores,
            calculated_at=current_time,
        )

    def get_score_breakdown(self, details: ScoreDetails) -> ScoreBreakdown:
        """Explain a calculation: each factor and its percentage share of the total."""
        factors: dict[str, FactorBreakdown] = {}
        contributions: dict[str, float] = {}

        for name, result in details.factor_scores.items():
            weight = self.weight_of(name)
            factors[name] = FactorBreakdown(
                score=result.score,
                confidence=result.confidence,
                weight=weight,
                details=result.details,
            )
            contributions[name] = result.score * weight * result.confidence

        total = sum(contributions.values())
        if total > 0:
            contributions = {
                name: round_half_up(value / total * 100) for name, value in contributions.items()
            }

        return ScoreBreakdown(
            overall_score=details.overall_score,
            factors=factors,
            factor_contributions=contributions,
            calculated_at=details.calculated_at,
        )
