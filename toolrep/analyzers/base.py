"""Base factor analyzer protocol and shared scoring helpers."""

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Protocol

from toolrep.errors import AnalyzerError
from toolrep.models.common import _utc_now
from toolrep.models.model_score import FactorResult
from toolrep.models.model_tool import Tool

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (80.5 -> 81).

    The epsilon absorbs float error such as 80.49999999999999.
    """
    return math.floor(value + 0.5 + 1e-9)


def normalize_score(value: float, min_value: float, max_value: float) -> int:
    """Map value linearly onto 0-100, clamped at both ends."""
    if value <= min_value:
        return 0
    if value >= max_value:
        return 100
    return round_half_up((value - min_value) / (max_value - min_value) * 100)


class FactorAnalyzer(Protocol):
    """Protocol defining the factor analyzer contract.

    An analyzer scores one independent signal of a tool from 0-100 and says
    how much that score can be trusted (confidence 0-1). A confidence of 0
    removes the factor from the weighted average.
    """

    name: str
    weight: float

    async def analyze(self, tool: Tool, current_time: datetime | None = None) -> FactorResult:
        """Score the tool on this factor. Never raises."""
        ...


class BaseFactorAnalyzer(ABC):
    """Shared implementation: default weight and failure handling."""

    name: str = ""
    default_weight: float = 0.0

    def __init__(self, weight: float | None = None):
        self.weight = self.default_weight if weight is None else weight

    async def analyze(self, tool: Tool, current_time: datetime | None = None) -> FactorResult:
        """Score the tool, turning any failure into a zero-confidence result.

        Args:
            tool: The tool to score
            current_time: Reference time for age computations (defaults to now)

        Returns:
            FactorResult. Failures score 0 with confidence 0.
        """
        if current_time is None:
            current_time = _utc_now()
        try:
            return await self._analyze(tool, current_time)
        except AnalyzerError as e:
            logger.warning(f"Analyzer {self.name} could not score {tool.url}: {e}")
            return FactorResult.failed(f"Error analyzing {self.name}", e)
        except Exception as e:
            logger.error(f"Analyzer {self.name} failed for {tool.url}: {e}")
            return FactorResult.failed(f"Error analyzing {self.name}", e)

    @abstractmethod
    async def _analyze(self, tool: Tool, current_time: datetime) -> FactorResult:
        ...
