"""Repository activity analyzer: popularity and liveliness of the repository."""

from datetime import datetime

from toolrep.analyzers.base import BaseFactorAnalyzer, normalize_score, round_half_up
from toolrep.clients.github import GitHubClient, parse_repo_url
from toolrep.consts import FACTOR_REPO_ACTIVITY
from toolrep.models.model_score import FactorResult, MessageDetails, RepoActivityDetails
from toolrep.models.model_tool import RepoMetrics, Tool

SECONDS_PER_MONTH = 30 * 24 * 3600

# Sub-score weights
STAR_WEIGHT = 0.25
FORK_WEIGHT = 0.20
WATCHER_WEIGHT = 0.10
CONTRIBUTOR_WEIGHT = 0.15
RECENCY_WEIGHT = 0.25
ISSUE_WEIGHT = 0.05


def recency_score(last_push_at: datetime | None, current_time: datetime) -> int:
    """Score by months (30 days) since the last push."""
    if last_push_at is None:
        return 0
    months = (current_time - last_push_at).total_seconds() / SECONDS_PER_MONTH
    if months < 1:
        return 100
    if months < 3:
        return 80
    if months < 6:
        return 60
    if months < 12:
        return 40
    if months < 24:
        return 20
    return 0


def issue_score(open_issues: int, stars: int) -> int:
    """Score the open-issue to star ratio. A moderate ratio scores best."""
    ratio = open_issues / stars if stars > 0 else 0
    if ratio == 0:
        return 50
    if ratio < 0.05:
        return 90
    if ratio < 0.1:
        return 80
    if ratio < 0.2:
        return 70
    if ratio < 0.3:
        return 60
    if ratio < 0.5:
        return 40
    return 20


def score_repo_activity(metrics: RepoMetrics, current_time: datetime) -> FactorResult:
    """Combine repository metrics into the activity score."""
    stars = metrics.stars or 0
    forks = metrics.forks or 0
    watchers = metrics.watchers or 0
    open_issues = metrics.open_issues_count or 0
    contributors = metrics.contributors_count or 0

    details = RepoActivityDetails(
        stars=stars,
        forks=forks,
        watchers=watchers,
        open_issues=open_issues,
        contributors=contributors,
        last_push_at=metrics.last_push_at,
        star_score=normalize_score(stars, 0, 1000),
        fork_score=normalize_score(forks, 0, 300),
        watcher_score=normalize_score(watchers, 0, 100),
        contributor_score=normalize_score(contributors, 1, 50),
        recency_score=recency_score(metrics.last_push_at, current_time),
        issue_score=issue_score(open_issues, stars),
    )
    score = round_half_up(
        details.star_score * STAR_WEIGHT
        + details.fork_score * FORK_WEIGHT
        + details.watcher_score * WATCHER_WEIGHT
        + details.contributor_score * CONTRIBUTOR_WEIGHT
        + details.recency_score * RECENCY_WEIGHT
        + details.issue_score * ISSUE_WEIGHT
    )
    return FactorResult(score=score, confidence=1.0, details=details)


class RepoActivityAnalyzer(BaseFactorAnalyzer):
    """Scores stars, forks, watchers, contributors, push recency and issue ratio.

    Uses the metrics stored by GitHub enrichment when present and only calls
    the API for tools that were never enriched.
    """

    name = FACTOR_REPO_ACTIVITY
    default_weight = 0.35

    def __init__(self, client: GitHubClient, weight: float | None = None):
        super().__init__(weight)
        self.client = client

    async def _analyze(self, tool: Tool, current_time: datetime) -> FactorResult:
        parsed = parse_repo_url(tool.repository_url)
        if parsed is None:
            return FactorResult(
                score=0,
                confidence=0,
                details=MessageDetails(message="No GitHub repository URL found"),
            )

        metrics = tool.metrics
        if metrics is None or metrics.stars is None:
            metrics = await self.client.fetch_metrics(*parsed)
        return score_repo_activity(metrics, current_time)
