"""License analyzer: scores how permissive, popular and compatible a license is."""

import logging
import re
from datetime import datetime
from typing import NamedTuple

from toolrep.analyzers.base import BaseFactorAnalyzer, round_half_up
from toolrep.clients.github import GitHubClient, parse_repo_url
from toolrep.consts import FACTOR_LICENSE
from toolrep.errors import MalformedSourceDataError, SourceUnavailableError
from toolrep.models.model_score import FactorResult, LicenseDetails, MessageDetails
from toolrep.models.model_tool import Tool

logger = logging.getLogger(__name__)


class LicenseProfile(NamedTuple):
    is_open_source: bool
    permissiveness: int
    popularity: int
    compatibility: int


CUSTOM_LICENSE = "Custom"

LICENSE_PROFILES: dict[str, LicenseProfile] = {
    "MIT": LicenseProfile(True, 95, 95, 95),
    "Apache-2.0": LicenseProfile(True, 90, 90, 90),
    "GPL-3.0": LicenseProfile(True, 50, 80, 60),
    "GPL-2.0": LicenseProfile(True, 50, 85, 60),
    "LGPL-3.0": LicenseProfile(True, 65, 70, 75),
    "LGPL-2.1": LicenseProfile(True, 65, 70, 75),
    "AGPL-3.0": LicenseProfile(True, 40, 60, 50),
    "BSD-3-Clause": LicenseProfile(True, 85, 80, 90),
    "BSD-2-Clause": LicenseProfile(True, 90, 75, 95),
    "MPL-2.0": LicenseProfile(True, 70, 65, 80),
    "Unlicense": LicenseProfile(True, 100, 60, 90),
    "CC0-1.0": LicenseProfile(True, 100, 70, 90),
    "CC-BY-4.0": LicenseProfile(True, 80, 75, 80),
    "CC-BY-SA-4.0": LicenseProfile(True, 60, 70, 70),
    "Proprietary": LicenseProfile(False, 20, 50, 30),
    CUSTOM_LICENSE: LicenseProfile(True, 50, 40, 50),
}

# Checked in order against the normalized text. Longer family names come
# before the ones they contain (AGPL and LGPL before GPL, CC-BY-SA before CC-BY).
LICENSE_MARKERS = (
    ("MIT", "MIT"),
    ("APACHE", "Apache-2.0"),
    ("AGPL", "AGPL-3.0"),
    ("LGPL-3", "LGPL-3.0"),
    ("LGPL-2", "LGPL-2.1"),
    ("GPL-3", "GPL-3.0"),
    ("GPL-2", "GPL-2.0"),
    ("BSD-3", "BSD-3-Clause"),
    ("BSD-2", "BSD-2-Clause"),
    ("MPL", "MPL-2.0"),
    ("CC0", "CC0-1.0"),
    ("CC-BY-SA", "CC-BY-SA-4.0"),
    ("CC-BY", "CC-BY-4.0"),
    ("PROPRIETARY", "Proprietary"),
)


def normalize_license(license_text: str) -> str:
    """Map free-text license names and SPDX ids onto a known license id.

    Unrecognized text maps to "Custom".
    """
    text = re.sub(r"\s+", "-", license_text.strip().upper())
    if "UNLICENSE" in text:
        return "Unlicense"

    text = text.replace("LICENSE", "")
    text = re.sub(r"V(\d)", r"-\1", text, count=1)
    text = re.sub(r"VERSION-(\d)", r"-\1", text, count=1)
    text = text.removeprefix("THE-")

    for marker, license_id in LICENSE_MARKERS:
        if marker in text:
            return license_id
    return CUSTOM_LICENSE


def score_license(license_text: str | None) -> FactorResult:
    """Score a license string. Missing licenses score 0 with low confidence."""
    if not license_text or not license_text.strip():
        return FactorResult(
            score=0,
            confidence=0.3,
            details=MessageDetails(message="No valid license found"),
        )

    canonical_id = normalize_license(license_text)
    profile = LICENSE_PROFILES[canonical_id]
    score = round_half_up(
        profile.permissiveness * 0.4 + profile.popularity * 0.3 + profile.compatibility * 0.3
    )
    return FactorResult(
        score=score,
        confidence=0.9,
        details=LicenseDetails(
            license=license_text,
            canonical_id=canonical_id,
            is_open_source=profile.is_open_source,
            permissiveness=profile.permissiveness,
            popularity=profile.popularity,
            compatibility=profile.compatibility,
        ),
    )


class LicenseAnalyzer(BaseFactorAnalyzer):
    """Scores the tool's license, looking it up on GitHub when none is stored."""

    name = FACTOR_LICENSE
    default_weight = 0.20

    def __init__(self, client: GitHubClient, weight: float | None = None):
        super().__init__(weight)
        self.client = client

    async def detect_license(self, tool: Tool) -> str | None:
        if tool.license:
            return tool.license

        parsed = parse_repo_url(tool.repository_url)
        if parsed is None:
            return None
        try:
            return await self.client.get_license(*parsed)
        except (SourceUnavailableError, MalformedSourceDataError) as e:
            logger.warning(f"Could not fetch GitHub license for {tool.url}: {e}")
            return None

    async def _analyze(self, tool: Tool, current_time: datetime) -> FactorResult:
        return score_license(await self.detect_license(tool))
