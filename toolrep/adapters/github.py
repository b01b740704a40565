"""GitHub enrichment adapter: adds repository metrics to known tools."""

import logging

from pydantic import ValidationError

from toolrep.adapters.base import SourceAdapter
from toolrep.clients.github import GitHubClient, extract_license, parse_repo_url
from toolrep.consts import GITHUB_API_URL, SOURCE_GITHUB
from toolrep.errors import MalformedSourceDataError, PersistenceError, SourceUnavailableError
from toolrep.models.model_tool import SourceRecord, Tool
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


class GitHubEnrichmentAdapter(SourceAdapter):
    """Enriches stored tools that have a GitHub repository URL.

    Never discovers new tools: every emitted record carries the URL of a tool
    already in the store. Tools are processed one at a time to stay within
    API rate limits.
    """

    base_url = GITHUB_API_URL

    def __init__(self, store: CatalogStore, client: GitHubClient):
        super().__init__(store)
        self.client = client

    @property
    def name(self) -> str:
        return SOURCE_GITHUB

    async def _enrich(self, tool: Tool, owner: str, repo: str) -> SourceRecord:
        data = await self.client.get_repo(owner, repo)
        metrics = await self.client.fetch_metrics(owner, repo)

        owner_info = data.get("owner") if isinstance(data.get("owner"), dict) else {}
        owner_type = owner_info.get("type")
        try:
            return SourceRecord(
                url=tool.url,
                name=data.get("name"),
                description=data.get("description"),
                repository_url=tool.repository_url,
                license=extract_license(data),
                owner=owner_info.get("login"),
                owner_type=owner_type.lower() if isinstance(owner_type, str) else None,
                metrics=metrics,
            )
        except ValidationError as e:
            raise MalformedSourceDataError(
                f"Invalid repository data for {owner}/{repo}: {e}", source=self.name
            ) from e

    async def collect(self) -> list[SourceRecord]:
        """Fetch repository data for every stored tool hosted on GitHub."""
        self._begin_run()
        records: list[SourceRecord] = []

        try:
            tools = self.store.list_tools(active_only=True)
        except PersistenceError as e:
            self._fail(f"Could not list tools: {e}")
            return records

        failures = 0
        for tool in tools:
            parsed = parse_repo_url(tool.repository_url)
            if parsed is None:
                continue
            owner, repo = parsed
            try:
                records.append(await self._enrich(tool, owner, repo))
            except (SourceUnavailableError, MalformedSourceDataError) as e:
                failures += 1
                logger.warning(f"Failed to enrich {tool.url} from {owner}/{repo}: {e}")
            except Exception as e:
                failures += 1
                logger.error(f"Unexpected error enriching {tool.url} from {owner}/{repo}: {e}")

        if failures and not records:
            self._fail(f"All {failures} repository lookups failed")
        self._records_collected = len(records)
        logger.info(f"Enriched {len(records)} tools from GitHub ({failures} failed)")
        return records
