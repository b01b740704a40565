"""Maintenance analyzer: push recency, commit frequency and project maturity."""

from datetime import datetime
from typing import Any

from toolrep.analyzers.base import BaseFactorAnalyzer, round_half_up
from toolrep.clients.github import GitHubClient, parse_repo_url, parse_timestamp
from toolrep.consts import FACTOR_MAINTENANCE, GITHUB_COMMIT_SAMPLE_SIZE
from toolrep.errors import AnalyzerError
from toolrep.models.model_score import FactorResult, MaintenanceDetails, MessageDetails
from toolrep.models.model_tool import Tool

SECONDS_PER_DAY = 24 * 3600

# Minimum commits per month for each frequency score, highest first
FREQUENCY_BUCKETS = (
    (30, 100),
    (15, 90),
    (8, 80),
    (4, 70),
    (2, 60),
    (1, 50),
    (0.5, 40),
    (0.25, 30),
)


def commit_date(commit: dict[str, Any]) -> datetime | None:
    """Author date of a commit from the commits listing (committer date as fallback)."""
    info = commit.get("commit") or {}
    for role in ("author", "committer"):
        person = info.get(role) or {}
        if person.get("date"):
            return parse_timestamp(person["date"])
    return None


def months_between(older: datetime, newer: datetime) -> int:
    """Calendar-month difference, ignoring the day of month."""
    return (newer.year - older.year) * 12 + newer.month - older.month


def commits_per_month(commit_dates: list[datetime]) -> float | None:
    """Commit frequency over a newest-first sample of commit dates.

    Samples spanning less than a calendar month are measured in days and
    scaled to 30 days.
    """
    if not commit_dates:
        return None
    newest, oldest = commit_dates[0], commit_dates[-1]
    months = months_between(oldest, newest)
    if months > 0:
        return len(commit_dates) / months
    days = max(1.0, (newest - oldest).total_seconds() / SECONDS_PER_DAY)
    return len(commit_dates) / days * 30


def recency_score(last_push_at: datetime | None, current_time: datetime) -> int:
    """Score by days since the last push."""
    if last_push_at is None:
        return 0
    days = (current_time - last_push_at).total_seconds() / SECONDS_PER_DAY
    if days < 7:
        return 100
    if days < 30:
        return 90
    if days < 90:
        return 70
    if days < 180:
        return 50
    if days < 365:
        return 30
    return 10


def frequency_score(per_month: float | None, age_days: int) -> int:
    """Score commit frequency, damped for projects younger than a year."""
    if per_month is None:
        return 50
    base = 20
    for threshold, bucket_score in FREQUENCY_BUCKETS:
        if per_month >= threshold:
            base = bucket_score
            break
    age_adjustment = min(1.0, age_days / 365)
    return round_half_up(base * (0.7 + 0.3 * age_adjustment))


def maturity_score(age_days: int) -> int:
    """Score project age. Peaks for five to eight year old projects."""
    years = age_days / 365
    if years < 0.25:
        return 50
    if years < 0.5:
        return 60
    if years < 1:
        return 70
    if years < 2:
        return 80
    if years < 5:
        return 90
    if years < 8:
        return 100
    if years < 10:
        return 90
    return 80


def score_maintenance(
    last_push_at: datetime | None,
    created_at: datetime | None,
    commit_dates: list[datetime],
    current_time: datetime,
) -> FactorResult:
    """Combine maintenance signals. Confidence drops when frequency is unknown."""
    age_days = 0
    if created_at is not None:
        age_seconds = (current_time - created_at).total_seconds()
        age_days = max(0, round_half_up(age_seconds / SECONDS_PER_DAY))
    per_month = commits_per_month(commit_dates)

    details = MaintenanceDetails(
        last_push_at=last_push_at,
        age_days=age_days,
        commits_per_month=per_month,
        recency_score=recency_score(last_push_at, current_time),
        frequency_score=frequency_score(per_month, age_days),
        maturity_score=maturity_score(age_days),
    )
    score = round_half_up(
        details.recency_score * 0.5 + details.frequency_score * 0.3 + details.maturity_score * 0.2
    )
    return FactorResult(
        score=score,
        confidence=1.0 if per_month is not None else 0.7,
        details=details,
    )


class MaintenanceAnalyzer(BaseFactorAnalyzer):
    """Scores how actively a GitHub repository is maintained."""

    name = FACTOR_MAINTENANCE
    default_weight = 0.25

    def __init__(
        self,
        client: GitHubClient,
        weight: float | None = None,
        commit_sample_size: int = GITHUB_COMMIT_SAMPLE_SIZE,
    ):
        super().__init__(weight)
        self.client = client
        self.commit_sample_size = commit_sample_size

    async def _analyze(self, tool: Tool, current_time: datetime) -> FactorResult:
        parsed = parse_repo_url(tool.repository_url)
        if parsed is None:
            return FactorResult(
                score=0,
                confidence=0,
                details=MessageDetails(message="No GitHub repository URL found"),
            )

        owner, repo = parsed
        repo_data = await self.client.get_repo(owner, repo)
        commits = await self.client.list_commits(owner, repo, per_page=self.commit_sample_size)
        dates = [d for d in (commit_date(c) for c in commits if isinstance(c, dict)) if d]

        created_at = parse_timestamp(repo_data.get("created_at"))
        if created_at is None:
            raise AnalyzerError(f"No creation date for {owner}/{repo}", source=self.name)

        return score_maintenance(
            last_push_at=parse_timestamp(repo_data.get("pushed_at")),
            created_at=created_at,
            commit_dates=dates,
            current_time=current_time,
        )
