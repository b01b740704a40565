"""Tests for factor analyzers."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from toolrep.analyzers.base import normalize_score, round_half_up
from toolrep.analyzers.license import LicenseAnalyzer, normalize_license, score_license
from toolrep.analyzers.maintenance import (
    MaintenanceAnalyzer,
    commits_per_month,
    frequency_score,
    maturity_score,
    score_maintenance,
)
from toolrep.analyzers.open_governance import (
    OpenGovernanceAnalyzer,
    is_open_source_license,
    readme_quality,
    score_governance,
)
from toolrep.analyzers.repo_activity import (
    RepoActivityAnalyzer,
    issue_score,
    recency_score,
    score_repo_activity,
)
from toolrep.errors import SourceUnavailableError
from toolrep.models.model_score import ErrorDetails, GovernanceDetails, MessageDetails
from toolrep.models.model_tool import RepoMetrics, Tool


@pytest.fixture
def client() -> MagicMock:
    """GitHub client double with async methods."""
    mock = MagicMock()
    mock.fetch_metrics = AsyncMock()
    mock.get_repo = AsyncMock()
    mock.list_commits = AsyncMock(return_value=[])
    mock.list_contents = AsyncMock(return_value=[])
    mock.fetch_text = AsyncMock(return_value="")
    mock.get_license = AsyncMock(return_value=None)
    return mock


class TestHelpers:
    """Tests for shared scoring helpers."""

    def test_round_half_up(self):
        assert round_half_up(80.5) == 81
        assert round_half_up(80.49999999999999) == 81
        assert round_half_up(80.4) == 80
        assert round_half_up(2.5) == 3

    def test_normalize_score_clamps(self):
        assert normalize_score(-5, 0, 100) == 0
        assert normalize_score(500, 0, 100) == 100
        assert normalize_score(500, 0, 1000) == 50


class TestRepoActivity:
    """Tests for the repository activity factor."""

    def test_recency_buckets(self, now):
        assert recency_score(None, now) == 0
        assert recency_score(now - timedelta(days=10), now) == 100
        assert recency_score(now - timedelta(days=45), now) == 80
        assert recency_score(now - timedelta(days=400), now) == 20
        assert recency_score(now - timedelta(days=800), now) == 0

    def test_issue_ratio(self):
        assert issue_score(0, 100) == 50
        assert issue_score(5, 0) == 50
        assert issue_score(2, 100) == 90
        assert issue_score(60, 100) == 20

    def test_score_from_metrics(self, sample_tool, now):
        result = score_repo_activity(sample_tool.metrics, now)

        assert result.score == 50
        assert result.confidence == 1.0
        assert result.details.star_score == 50
        assert result.details.contributor_score == 14

    @pytest.mark.asyncio
    async def test_no_github_url(self, client, bare_tool, now):
        result = await RepoActivityAnalyzer(client).analyze(bare_tool, now)

        assert result.score == 0
        assert result.confidence == 0
        assert isinstance(result.details, MessageDetails)
        client.fetch_metrics.assert_not_called()

    @pytest.mark.asyncio
    async def test_uses_stored_metrics(self, client, sample_tool, now):
        result = await RepoActivityAnalyzer(client).analyze(sample_tool, now)

        assert result.score == 50
        client.fetch_metrics.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetches_metrics_when_not_enriched(self, client, sample_tool, now):
        tool = sample_tool.model_copy(update={"metrics": None})
        client.fetch_metrics.return_value = RepoMetrics(stars=1000, last_push_at=now)

        result = await RepoActivityAnalyzer(client).analyze(tool, now)

        client.fetch_metrics.assert_awaited_once_with("acme", "weather-server")
        # 100 * 0.25 stars + 100 * 0.25 recency + 50 * 0.05 issues
        assert result.score == 53

    @pytest.mark.asyncio
    async def test_failure_becomes_zero_confidence(self, client, sample_tool, now):
        tool = sample_tool.model_copy(update={"metrics": None})
        client.fetch_metrics.side_effect = RuntimeError("boom")

        result = await RepoActivityAnalyzer(client).analyze(tool, now)

        assert result.score == 0
        assert result.confidence == 0
        assert isinstance(result.details, ErrorDetails)
        assert result.details.message == "Error analyzing repo_activity"

    def test_default_weight(self, client):
        assert RepoActivityAnalyzer(client).weight == 0.35
        assert RepoActivityAnalyzer(client, weight=0.5).weight == 0.5


class TestMaintenance:
    """Tests for the maintenance factor."""

    def test_commits_per_month_across_months(self):
        dates = [datetime(2025, 6, 1, tzinfo=UTC)] * 19 + [datetime(2025, 4, 1, tzinfo=UTC)]
        assert commits_per_month(dates) == 10

    def test_commits_per_month_within_one_month(self):
        dates = [
            datetime(2025, 6, 10, tzinfo=UTC),
            datetime(2025, 6, 5, tzinfo=UTC),
            datetime(2025, 6, 1, tzinfo=UTC),
        ]
        assert commits_per_month(dates) == pytest.approx(10.0)

    def test_single_commit_counts_as_one_day(self):
        assert commits_per_month([datetime(2025, 6, 1, tzinfo=UTC)]) == 30

    def test_no_commits(self):
        assert commits_per_month([]) is None

    def test_frequency_score(self):
        assert frequency_score(None, 1000) == 50
        assert frequency_score(30, 365) == 100
        assert frequency_score(0.1, 0) == 14

    def test_maturity_score(self):
        assert maturity_score(0) == 50
        assert maturity_score(3 * 365) == 90
        assert maturity_score(3000) == 90
        assert maturity_score(4000) == 80

    def test_score_with_commits(self, now):
        dates = [datetime(2025, 6, 1, tzinfo=UTC)] * 19 + [datetime(2025, 4, 1, tzinfo=UTC)]

        result = score_maintenance(
            last_push_at=now - timedelta(days=3),
            created_at=now - timedelta(days=1095),
            commit_dates=dates,
            current_time=now,
        )

        assert result.score == 92
        assert result.confidence == 1.0
        assert result.details.age_days == 1095

    def test_unknown_frequency_lowers_confidence(self, now):
        result = score_maintenance(
            last_push_at=now - timedelta(days=3),
            created_at=now - timedelta(days=1095),
            commit_dates=[],
            current_time=now,
        )

        assert result.score == 83
        assert result.confidence == 0.7

    @pytest.mark.asyncio
    async def test_analyze_from_github(self, client, sample_tool, now):
        client.get_repo.return_value = {
            "pushed_at": "2025-05-29T12:00:00Z",
            "created_at": "2022-06-01T12:00:00Z",
        }
        client.list_commits.return_value = [
            {"commit": {"author": {"date": "2025-05-31T00:00:00Z"}}},
            {"commit": {"committer": {"date": "2025-03-31T00:00:00Z"}}},
        ]

        result = await MaintenanceAnalyzer(client).analyze(sample_tool, now)

        assert result.details.commits_per_month == 1
        assert result.score == 83
        client.list_commits.assert_awaited_once_with("acme", "weather-server", per_page=100)

    @pytest.mark.asyncio
    async def test_missing_creation_date_fails_factor(self, client, sample_tool, now):
        client.get_repo.return_value = {"pushed_at": "2025-05-29T12:00:00Z"}

        result = await MaintenanceAnalyzer(client).analyze(sample_tool, now)

        assert result.score == 0
        assert result.confidence == 0
        assert "No creation date" in result.details.error


class TestOpenGovernance:
    """Tests for the open governance factor."""

    def test_readme_quality(self):
        assert readme_quality("") == 0
        assert readme_quality("# Title\n\nInstall with pip") == 30

    def test_rich_readme_is_capped(self):
        content = "\n".join(
            ["# A", "## B", "## C", "## D", "## E", "Getting started"]
            + ["```\ncode\n```"] * 3
            + ["![img](a.png)"] * 2
            + ["[link](https://example.com)"] * 5
            + ["x" * 5000]
        )
        assert readme_quality(content) == 100

    def test_open_source_license(self):
        assert is_open_source_license("Apache-2.0")
        assert is_open_source_license("mit")
        assert not is_open_source_license("Proprietary")
        assert not is_open_source_license(None)

    def test_no_repository(self):
        assert score_governance(GovernanceDetails()).score == 10
        licensed = score_governance(GovernanceDetails(has_license=True, license="MIT"))
        assert licensed.score == 30
        assert licensed.confidence == 0.5

    def test_points_accumulate(self):
        details = GovernanceDetails(
            has_public_repository=True,
            has_readme=True,
            readme_quality=50,
            has_docs=True,
            has_license=True,
            license="MIT",
            has_contributing=True,
            has_community_engagement=True,
        )
        result = score_governance(details)
        assert result.score == 90
        assert result.confidence == 1.0

    @pytest.mark.asyncio
    async def test_tool_without_repository(self, client, bare_tool, now):
        result = await OpenGovernanceAnalyzer(client).analyze(bare_tool, now)

        assert result.score == 10
        assert result.confidence == 0.5
        client.get_repo.assert_not_called()

    @pytest.mark.asyncio
    async def test_repository_outside_github(self, client, now):
        tool = Tool(url="u", repository_url="https://gitlab.com/acme/x", license="MIT")

        result = await OpenGovernanceAnalyzer(client).analyze(tool, now)

        assert result.score == 40
        assert result.details.has_public_repository

    @pytest.mark.asyncio
    async def test_github_repository(self, client, sample_tool, now):
        client.get_repo.return_value = {"license": {"spdx_id": "MIT"}, "has_issues": True}
        client.list_contents.return_value = [
            {"name": "README.md", "type": "file", "download_url": "https://raw/readme"},
            {"name": "docs", "type": "dir"},
            {"name": "CONTRIBUTING.md", "type": "file"},
        ]
        client.fetch_text.return_value = "# Title\n\nInstall with pip"

        result = await OpenGovernanceAnalyzer(client).analyze(sample_tool, now)

        client.fetch_text.assert_awaited_once_with("https://raw/readme")
        assert result.details.readme_quality == 30
        assert result.score == 86

    @pytest.mark.asyncio
    async def test_readme_download_failure(self, client, sample_tool, now):
        client.get_repo.return_value = {}
        client.list_contents.return_value = [
            {"name": "README.md", "type": "file", "download_url": "https://raw/readme"},
        ]
        client.fetch_text.side_effect = SourceUnavailableError("down")

        result = await OpenGovernanceAnalyzer(client).analyze(sample_tool, now)

        assert result.details.has_readme
        assert result.details.readme_quality == 0
        # 20 public + 10 readme + 20 for the MIT license stored on the tool
        assert result.score == 50


class TestLicense:
    """Tests for the license factor."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("MIT", "MIT"),
            ("MIT License", "MIT"),
            ("Apache License 2.0", "Apache-2.0"),
            ("GPL-3.0", "GPL-3.0"),
            ("GPLv3", "GPL-3.0"),
            ("GPL-2.0", "GPL-2.0"),
            ("AGPL-3.0", "AGPL-3.0"),
            ("LGPL-2.1", "LGPL-2.1"),
            ("BSD-3-Clause", "BSD-3-Clause"),
            ("MPL-2.0", "MPL-2.0"),
            ("The Unlicense", "Unlicense"),
            ("CC-BY-SA-4.0", "CC-BY-SA-4.0"),
            ("CC-BY-4.0", "CC-BY-4.0"),
            ("Proprietary", "Proprietary"),
            ("Some odd terms", "Custom"),
        ],
    )
    def test_normalize_license(self, text, expected):
        assert normalize_license(text) == expected

    def test_scores(self):
        assert score_license("MIT").score == 95
        assert score_license("Apache-2.0").score == 90
        assert score_license("AGPL-3.0").score == 49
        assert score_license("Some odd terms").score == 47
        assert score_license("MIT").confidence == 0.9

    def test_missing_license(self):
        for value in (None, "", "   "):
            result = score_license(value)
            assert result.score == 0
            assert result.confidence == 0.3
            assert result.details.message == "No valid license found"

    @pytest.mark.asyncio
    async def test_uses_stored_license(self, client, sample_tool, now):
        result = await LicenseAnalyzer(client).analyze(sample_tool, now)

        assert result.score == 95
        client.get_license.assert_not_called()

    @pytest.mark.asyncio
    async def test_looks_up_github_license(self, client, sample_tool, now):
        tool = sample_tool.model_copy(update={"license": None})
        client.get_license.return_value = "Apache-2.0"

        result = await LicenseAnalyzer(client).analyze(tool, now)

        assert result.score == 90
        assert result.details.canonical_id == "Apache-2.0"

    @pytest.mark.asyncio
    async def test_lookup_failure_counts_as_missing(self, client, sample_tool, now):
        tool = sample_tool.model_copy(update={"license": None})
        client.get_license.side_effect = SourceUnavailableError("rate limited")

        result = await LicenseAnalyzer(client).analyze(tool, now)

        assert result.score == 0
        assert result.confidence == 0.3
