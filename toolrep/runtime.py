"""Explicit construction of the long-lived service objects."""

import logging
from dataclasses import dataclass
from pathlib import Path

from toolrep.adapters import SourceAdapter, get_adapters
from toolrep.analyzers import get_analyzers
from toolrep.clients.github import GitHubClient
from toolrep.collection.orchestrator import CollectionOrchestrator
from toolrep.consts import DEFAULT_DATA_DIR
from toolrep.scoring.calculator import ScoreCalculator
from toolrep.scoring.history import HistoryTracker
from toolrep.scoring.orchestrator import ScoringOrchestrator
from toolrep.storage.base import CatalogStore
from toolrep.storage.file_store import FileStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a process needs, wired once at startup."""

    store: CatalogStore
    client: GitHubClient
    adapters: list[SourceAdapter]
    collection: CollectionOrchestrator
    scoring: ScoringOrchestrator

    async def start(self) -> None:
        """Run startup collection and scoring if needed, then schedule both."""
        await self.collection.start()
        await self.scoring.start()

    async def aclose(self) -> None:
        """Stop schedules and close HTTP clients."""
        await self.collection.stop()
        await self.scoring.stop()
        for adapter in self.adapters:
            await adapter.aclose()
        await self.client.aclose()


def build_services(
    data_dir: Path | str | None = None,
    github_token: str | None = None,
    factor_weights: dict[str, float] | None = None,
    directory_url: str | None = None,
    store: CatalogStore | None = None,
    client: GitHubClient | None = None,
) -> Services:
    """Build the store, clients, adapters, analyzers and orchestrators.

    Args:
        data_dir: Data directory for the file store (defaults to DEFAULT_DATA_DIR)
        github_token: GitHub API token. None = read from env (GITHUB_TOKEN)
        factor_weights: Weight overrides per factor name
        directory_url: Directory listing endpoint override
        store: Prebuilt store, replaces the file store
        client: Prebuilt GitHub client
    """
    store = store or FileStore(data_dir or DEFAULT_DATA_DIR)
    client = client or GitHubClient(token=github_token)

    adapters = get_adapters(store, client, directory_url=directory_url)
    calculator = ScoreCalculator(get_analyzers(client), factor_weights=factor_weights)

    logger.debug(f"Built services with sources {[a.name for a in adapters]}")
    return Services(
        store=store,
        client=client,
        adapters=adapters,
        collection=CollectionOrchestrator(store, adapters),
        scoring=ScoringOrchestrator(store, calculator, HistoryTracker(store)),
    )
