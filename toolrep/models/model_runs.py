"""Summaries of collection and scoring runs."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class CollectionRunResult:
    """Result of one collection run."""

    sources: list[str]
    records_collected: int
    created: int
    updated: int
    failed: int
    failures: dict[str, str] = field(default_factory=dict)  # url → error
    started_at: datetime | None = None
    duration_seconds: float = 0.0


@dataclass
class ScoringRunResult:
    """Result of scoring every active tool."""

    total: int
    calculated: int
    cached: int
    failed: int
    failures: dict[str, str] = field(default_factory=dict)  # tool_id → error
    started_at: datetime | None = None
    duration_seconds: float = 0.0
