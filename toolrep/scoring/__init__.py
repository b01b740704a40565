"""Scoring pipeline: calculation, history and run orchestration."""

from toolrep.scoring.calculator import ScoreCalculator, default_weights
from toolrep.scoring.history import HistoryTracker
from toolrep.scoring.orchestrator import ScoringOrchestrator

__all__ = [
    "HistoryTracker",
    "ScoreCalculator",
    "ScoringOrchestrator",
    "default_weights",
]
