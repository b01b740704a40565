"""Models for factor results, score history rows and explainability views."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from toolrep.models.common import _utc_now


class Trend(str, Enum):
    """Direction of the latest score change."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class MessageDetails(BaseModel):
    """Explains why a factor could not be scored."""

    kind: Literal["message"] = "message"
    message: str


class ErrorDetails(BaseModel):
    """Records an analyzer failure."""

    kind: Literal["error"] = "error"
    message: str
    error: str


class RepoActivityDetails(BaseModel):
    """Inputs and sub-scores of the repository activity factor."""

    kind: Literal["repo_activity"] = "repo_activity"
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    contributors: int = 0
    last_push_at: datetime | None = None
    star_score: int = 0
    fork_score: int = 0
    watcher_score: int = 0
    contributor_score: int = 0
    recency_score: int = 0
    issue_score: int = 0


class MaintenanceDetails(BaseModel):
    """Inputs and sub-scores of the maintenance factor."""

    kind: Literal["maintenance"] = "maintenance"
    last_push_at: datetime | None = None
    age_days: int = 0
    commits_per_month: float | None = None
    recency_score: int = 0
    frequency_score: int = 0
    maturity_score: int = 0


class GovernanceDetails(BaseModel):
    """Inputs of the open governance factor."""

    kind: Literal["open_governance"] = "open_governance"
    has_public_repository: bool = False
    has_readme: bool = False
    readme_quality: int = 0
    has_docs: bool = False
    has_license: bool = False
    license: str | None = None
    has_contributing: bool = False
    has_community_engagement: bool = False


class LicenseDetails(BaseModel):
    """Resolved license profile."""

    kind: Literal["license"] = "license"
    license: str | None = None
    canonical_id: str | None = None
    is_open_source: bool = False
    permissiveness: int = 0
    popularity: int = 0
    compatibility: int = 0


FactorDetails = Annotated[
    MessageDetails
    | ErrorDetails
    | RepoActivityDetails
    | MaintenanceDetails
    | GovernanceDetails
    | LicenseDetails,
    Field(discriminator="kind"),
]


class FactorResult(BaseModel):
    """Output of one factor analyzer for one tool."""

    score: float = Field(ge=0.0, le=100.0)
    confidence: float = Field(ge=0.0, le=1.0)
    details: FactorDetails | None = None

    @classmethod
    def failed(cls, message: str, error: Exception | str) -> "FactorResult":
        """Result used when an analyzer fails: excluded from the average."""
        return cls(
            score=0,
            confidence=0,
            details=ErrorDetails(message=message, error=str(error)),
        )


class ScoreDetails(BaseModel):
    """All factor results of one calculation plus the overall score."""

    overall_score: int = Field(ge=0, le=100)
    factor_scores: dict[str, FactorResult] = Field(default_factory=dict)
    calculated_at: datetime = Field(default_factory=_utc_now)


class FactorBreakdown(BaseModel):
    """One factor as shown in a score breakdown."""

    score: float
    confidence: float
    weight: float
    details: FactorDetails | None = None


class ScoreBreakdown(BaseModel):
    """Explainability view of a calculation.

    ``factor_contributions`` holds each factor's rounded percentage share of
    the total weighted contribution.
    """

    overall_score: int
    factors: dict[str, FactorBreakdown] = Field(default_factory=dict)
    factor_contributions: dict[str, float] = Field(default_factory=dict)
    calculated_at: datetime


class ReputationScore(BaseModel):
    """Immutable score history row. One per scoring run per tool."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: uuid4().hex)
    tool_id: str
    overall_score: int = Field(ge=0, le=100)
    repo_activity_score: float | None = Field(default=None, ge=0.0, le=100.0)
    maintenance_score: float | None = Field(default=None, ge=0.0, le=100.0)
    open_governance_score: float | None = Field(default=None, ge=0.0, le=100.0)
    license_score: float | None = Field(default=None, ge=0.0, le=100.0)
    calculated_at: datetime = Field(default_factory=_utc_now)
