"""Factor analyzers and their registry."""

from toolrep.analyzers.base import (
    BaseFactorAnalyzer,
    FactorAnalyzer,
    normalize_score,
    round_half_up,
)
from toolrep.analyzers.license import LicenseAnalyzer, normalize_license, score_license
from toolrep.analyzers.maintenance import MaintenanceAnalyzer, score_maintenance
from toolrep.analyzers.open_governance import (
    OpenGovernanceAnalyzer,
    readme_quality,
    score_governance,
)
from toolrep.analyzers.repo_activity import RepoActivityAnalyzer, score_repo_activity
from toolrep.clients.github import GitHubClient


def get_analyzers(client: GitHubClient) -> list[FactorAnalyzer]:
    """Build the four analyzers with their default weights."""
    return [
        RepoActivityAnalyzer(client),
        MaintenanceAnalyzer(client),
        OpenGovernanceAnalyzer(client),
        LicenseAnalyzer(client),
    ]


__all__ = [
    "BaseFactorAnalyzer",
    "FactorAnalyzer",
    "LicenseAnalyzer",
    "MaintenanceAnalyzer",
    "OpenGovernanceAnalyzer",
    "RepoActivityAnalyzer",
    "get_analyzers",
    "normalize_license",
    "normalize_score",
    "readme_quality",
    "round_half_up",
    "score_governance",
    "score_license",
    "score_maintenance",
    "score_repo_activity",
]
