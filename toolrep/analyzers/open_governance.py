"""Open governance analyzer: how openly a project is developed and documented."""

import logging
import re
from datetime import datetime
from typing import Any

from toolrep.analyzers.base import BaseFactorAnalyzer, round_half_up
from toolrep.clients.github import GitHubClient, extract_license, parse_repo_url
from toolrep.consts import FACTOR_OPEN_GOVERNANCE
from toolrep.errors import SourceUnavailableError
from toolrep.models.model_score import FactorResult, GovernanceDetails
from toolrep.models.model_tool import Tool

logger = logging.getLogger(__name__)

# Substrings of license identifiers counted as recognized open-source licenses
OPEN_SOURCE_LICENSE_MARKERS = (
    "MIT",
    "APACHE",
    "GPL",
    "BSD",
    "LGPL",
    "MPL",
    "CDDL",
    "EPL",
    "MS-PL",
    "CPL",
    "AGPL",
    "EUPL",
    "CC0",
    "UNLICENSE",
    "WTFPL",
)

DOCS_DIRECTORY_NAMES = ("docs", "documentation")

HEADING_RE = re.compile(r"#{1,6} ")
CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
IMAGE_RE = re.compile(r"!\[.*?\]\(.*?\)")
LINK_RE = re.compile(r"\[.*?\]\(.*?\)")


def is_open_source_license(license_id: str | None) -> bool:
    if not license_id:
        return False
    upper = license_id.upper()
    return any(marker in upper for marker in OPEN_SOURCE_LICENSE_MARKERS)


def readme_quality(content: str) -> int:
    """Score README content 0-100.

    Points for length, headings, fenced code blocks, images, links and
    installation or getting-started instructions.
    """
    if not content:
        return 0

    score = 0

    length = len(content)
    if length > 5000:
        score += 25
    elif length > 2000:
        score += 20
    elif length > 1000:
        score += 15
    elif length > 500:
        score += 10
    else:
        score += 5

    headings = len(HEADING_RE.findall(content))
    if headings >= 5:
        score += 20
    elif headings >= 3:
        score += 15
    elif headings >= 1:
        score += 10

    code_blocks = len(CODE_BLOCK_RE.findall(content))
    if code_blocks >= 3:
        score += 15
    elif code_blocks >= 1:
        score += 10

    images = len(IMAGE_RE.findall(content))
    if images >= 2:
        score += 10
    elif images >= 1:
        score += 5

    # Image syntax also matches the link pattern
    links = len(LINK_RE.findall(content)) - images
    if links >= 5:
        score += 15
    elif links >= 3:
        score += 10
    elif links >= 1:
        score += 5

    lowered = content.lower()
    if "install" in lowered or "getting started" in lowered:
        score += 15

    return min(100, score)


def score_governance(details: GovernanceDetails) -> FactorResult:
    """Accumulate governance points, capped at 100."""
    if not details.has_public_repository:
        return FactorResult(
            score=30 if details.has_license else 10,
            confidence=0.5,
            details=details,
        )

    score = 20
    if details.has_readme:
        score += 10 + round_half_up(details.readme_quality * 0.2)
    if details.has_docs:
        score += 15
    if details.has_license:
        score += 15
        if is_open_source_license(details.license):
            score += 5
    if details.has_contributing:
        score += 10
    if details.has_community_engagement:
        score += 5

    return FactorResult(score=min(100, score), confidence=1.0, details=details)


class OpenGovernanceAnalyzer(BaseFactorAnalyzer):
    """Scores public availability, documentation, licensing and community signals."""

    name = FACTOR_OPEN_GOVERNANCE
    default_weight = 0.20

    def __init__(self, client: GitHubClient, weight: float | None = None):
        super().__init__(weight)
        self.client = client

    async def _readme_quality(self, readme: dict[str, Any]) -> int:
        url = readme.get("download_url")
        if not url:
            return 0
        try:
            return readme_quality(await self.client.fetch_text(url))
        except SourceUnavailableError as e:
            logger.warning(f"Could not download README {url}: {e}")
            return 0

    async def _inspect_github(self, tool: Tool, owner: str, repo: str) -> GovernanceDetails:
        repo_data = await self.client.get_repo(owner, repo)
        contents = await self.client.list_contents(owner, repo)
        entries = [e for e in contents if isinstance(e, dict) and isinstance(e.get("name"), str)]

        readme = next((e for e in entries if "readme" in e["name"].lower()), None)
        license_id = extract_license(repo_data) or tool.license

        return GovernanceDetails(
            has_public_repository=True,
            has_readme=readme is not None,
            readme_quality=await self._readme_quality(readme) if readme else 0,
            has_docs=any(
                e.get("type") == "dir" and e["name"].lower() in DOCS_DIRECTORY_NAMES
                for e in entries
            ),
            has_license=bool(license_id),
            license=license_id,
            has_contributing=any("contributing" in e["name"].lower() for e in entries),
            has_community_engagement=any(
                bool(repo_data.get(flag))
                for flag in ("has_issues", "has_projects", "has_wiki", "has_discussions")
            ),
        )

    async def _analyze(self, tool: Tool, current_time: datetime) -> FactorResult:
        if not tool.repository_url:
            details = GovernanceDetails(has_license=bool(tool.license), license=tool.license)
            return score_governance(details)

        parsed = parse_repo_url(tool.repository_url)
        if parsed is None:
            # Repository hosted elsewhere: only its existence is known
            details = GovernanceDetails(
                has_public_repository=True,
                has_license=bool(tool.license),
                license=tool.license,
            )
            return score_governance(details)

        return score_governance(await self._inspect_github(tool, *parsed))
