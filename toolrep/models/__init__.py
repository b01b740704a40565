"""Pydantic models for toolrep."""

from toolrep.models.model_runs import CollectionRunResult, ScoringRunResult
from toolrep.models.model_score import (
    ErrorDetails,
    FactorBreakdown,
    FactorDetails,
    FactorResult,
    GovernanceDetails,
    LicenseDetails,
    MaintenanceDetails,
    MessageDetails,
    RepoActivityDetails,
    ReputationScore,
    ScoreBreakdown,
    ScoreDetails,
    Trend,
)
from toolrep.models.model_storage import (
    ScoresFile,
    SourceState,
    SourceStatus,
    SourceStatusFile,
    ToolsFile,
)
from toolrep.models.model_tool import (
    CanonicalRecord,
    Capability,
    CapabilityDetails,
    PromptDetails,
    RepoMetrics,
    ResourceDetails,
    SourceRecord,
    TextDetails,
    Tool,
    ToolDetails,
)

__all__ = [
    # Tool models
    "CanonicalRecord",
    "Capability",
    "CapabilityDetails",
    "PromptDetails",
    "RepoMetrics",
    "ResourceDetails",
    "SourceRecord",
    "TextDetails",
    "Tool",
    "ToolDetails",
    # Score models
    "ErrorDetails",
    "FactorBreakdown",
    "FactorDetails",
    "FactorResult",
    "GovernanceDetails",
    "LicenseDetails",
    "MaintenanceDetails",
    "MessageDetails",
    "RepoActivityDetails",
    "ReputationScore",
    "ScoreBreakdown",
    "ScoreDetails",
    "Trend",
    # Run summaries
    "CollectionRunResult",
    "ScoringRunResult",
    # Storage models
    "ScoresFile",
    "SourceState",
    "SourceStatus",
    "SourceStatusFile",
    "ToolsFile",
]
