"""Pytest configuration and fixtures."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from toolrep.models.model_tool import Capability, RepoMetrics, Tool, ToolDetails
from toolrep.storage.file_store import FileStore


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for deterministic scoring."""
    return datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store(tmp_path: Path) -> FileStore:
    """Create a FileStore in a temporary data directory."""
    return FileStore(tmp_path / "data")


@pytest.fixture
def sample_tool(now: datetime) -> Tool:
    """Create a sample enriched tool for testing."""
    return Tool(
        url="https://example.com/weather-server",
        name="weather-server",
        description="Weather forecasts over MCP",
        repository_url="https://github.com/acme/weather-server",
        license="MIT",
        owner="acme",
        owner_type="organization",
        categories=["weather", "api"],
        capabilities=[
            Capability(
                name="get_forecast",
                description="Forecast for a city",
                details=ToolDetails(input_schema={"type": "object"}),
            )
        ],
        metrics=RepoMetrics(
            stars=500,
            forks=60,
            watchers=20,
            open_issues_count=10,
            last_push_at=now - timedelta(days=10),
            contributors_count=8,
        ),
    )


@pytest.fixture
def bare_tool() -> Tool:
    """Create a tool with no repository and no license."""
    return Tool(url="https://example.com/bare", name="bare")
