"""Source adapters and their registry."""

from toolrep.adapters.base import SourceAdapter
from toolrep.adapters.directory import DirectoryAdapter, parse_directory_entry
from toolrep.adapters.github import GitHubEnrichmentAdapter
from toolrep.clients.github import GitHubClient
from toolrep.storage.base import CatalogStore


def get_adapters(
    store: CatalogStore,
    client: GitHubClient,
    directory_url: str | None = None,
) -> list[SourceAdapter]:
    """Build the adapter list in source order.

    The directory runs first so its values win scalar conflicts in the merge.
    """
    if directory_url:
        directory = DirectoryAdapter(store, base_url=directory_url)
    else:
        directory = DirectoryAdapter(store)
    return [
        directory,
        GitHubEnrichmentAdapter(store, client),
    ]


__all__ = [
    "DirectoryAdapter",
    "GitHubEnrichmentAdapter",
    "SourceAdapter",
    "get_adapters",
    "parse_directory_entry",
]
