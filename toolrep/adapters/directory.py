"""Directory adapter: discovers tools from a cursor-paginated directory API.

Each run fetches at most ``max_pages`` pages and stores the cursor after every
page, so a long directory is swept across several runs. Once a sweep reaches
the last page the next run starts over from the first one.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from toolrep.adapters.base import SourceAdapter
from toolrep.consts import (
    DIRECTORY_API_URL,
    DIRECTORY_MAX_PAGES,
    DIRECTORY_PAGE_SIZE,
    DIRECTORY_TIMEOUT_SECONDS,
    SOURCE_DIRECTORY,
)
from toolrep.errors import MalformedSourceDataError, PersistenceError, SourceUnavailableError
from toolrep.models.model_tool import Capability, SourceRecord, ToolDetails
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedSourceDataError(f"Expected string, got {type(value).__name__}")
    return value.strip() or None


def _nested_string(entry: dict[str, Any], key: str, field: str) -> str | None:
    """Read ``entry[key][field]`` where ``entry[key]`` may be missing or null."""
    container = entry.get(key)
    if container is None:
        return None
    if not isinstance(container, dict):
        raise MalformedSourceDataError(f"Expected object for '{key}'")
    return _string_or_none(container.get(field))


def _extract_categories(entry: dict[str, Any]) -> list[str]:
    """Extract category labels, accepting plain strings or {name: ...} objects."""
    attributes = entry.get("attributes") or []
    if not isinstance(attributes, list):
        raise MalformedSourceDataError("Expected list for 'attributes'")
    categories: list[str] = []
    for attr in attributes:
        if isinstance(attr, str) and attr.strip():
            categories.append(attr.strip())
        elif isinstance(attr, dict) and attr.get("name"):
            categories.append(str(attr["name"]).strip())
    return categories


def _extract_capabilities(entry: dict[str, Any]) -> list[Capability]:
    items = entry.get("tools") or []
    if not isinstance(items, list):
        raise MalformedSourceDataError("Expected list for 'tools'")
    capabilities: list[Capability] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("name"):
            logger.debug(f"Skipping unnamed tool entry in {entry.get('url')}")
            continue
        schema = item.get("inputSchema")
        capabilities.append(
            Capability(
                name=item["name"],
                description=_string_or_none(item.get("description")),
                details=ToolDetails(input_schema=schema if isinstance(schema, dict) else None),
            )
        )
    return capabilities


def parse_directory_entry(entry: Any) -> SourceRecord:
    """Map one directory entry to a SourceRecord.

    Raises:
        MalformedSourceDataError: If the entry has an unexpected shape.
    """
    if not isinstance(entry, dict):
        raise MalformedSourceDataError(f"Expected object, got {type(entry).__name__}")

    try:
        return SourceRecord(
            url=_string_or_none(entry.get("url")),
            name=_string_or_none(entry.get("name")),
            description=_string_or_none(entry.get("description")),
            repository_url=_nested_string(entry, "repository", "url"),
            license=_nested_string(entry, "spdxLicense", "name"),
            owner=_string_or_none(entry.get("namespace")),
            categories=_extract_categories(entry),
            capabilities=_extract_capabilities(entry),
        )
    except ValidationError as e:
        raise MalformedSourceDataError(f"Invalid directory entry: {e}") from e


class DirectoryAdapter(SourceAdapter):
    """Discovers tools by paginating the directory API."""

    def __init__(
        self,
        store: CatalogStore,
        base_url: str = DIRECTORY_API_URL,
        page_size: int = DIRECTORY_PAGE_SIZE,
        max_pages: int = DIRECTORY_MAX_PAGES,
        timeout: float = DIRECTORY_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize directory adapter.

        Args:
            store: Store holding the pagination cursor.
            base_url: Directory listing endpoint.
            page_size: Entries requested per page.
            max_pages: Page fetches per collect() call.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used to stub the API in tests.
        """
        super().__init__(store)
        self.base_url = base_url
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return SOURCE_DIRECTORY

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _fetch_page(self, cursor: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {"first": self.page_size}
        if cursor:
            params["after"] = cursor

        client = await self._get_client()
        try:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(
                f"Directory returned {e.response.status_code}",
                source=self.name,
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise SourceUnavailableError(f"Directory request failed: {e}", source=self.name) from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedSourceDataError("Non-JSON directory page", source=self.name) from e
        if not isinstance(data, dict) or not isinstance(data.get("servers", []), list):
            raise MalformedSourceDataError("Unexpected directory page shape", source=self.name)
        return data

    def _starting_cursor(self) -> str | None:
        status = self.store.get_source_status(self.name)
        if status and status.has_next_page and status.end_cursor:
            logger.info(f"Resuming directory sweep after cursor {status.end_cursor}")
            return status.end_cursor
        return None

    def _save_cursor(self, end_cursor: str | None, has_next_page: bool) -> None:
        status = self._load_status()
        self.store.save_source_status(
            status.model_copy(update={"end_cursor": end_cursor, "has_next_page": has_next_page})
        )

    async def collect(self) -> list[SourceRecord]:
        """Fetch up to max_pages directory pages starting at the stored cursor."""
        self._begin_run()
        records: list[SourceRecord] = []

        try:
            cursor = self._starting_cursor()
        except PersistenceError as e:
            self._fail(f"Could not read pagination cursor: {e}")
            return records

        for page in range(1, self.max_pages + 1):
            try:
                data = await self._fetch_page(cursor)
            except (SourceUnavailableError, MalformedSourceDataError) as e:
                self._fail(f"Stopped at page {page}: {e}")
                break

            skipped = 0
            for entry in data.get("servers", []):
                try:
                    records.append(parse_directory_entry(entry))
                except MalformedSourceDataError as e:
                    skipped += 1
                    logger.debug(f"Skipping malformed directory entry: {e}")
            if skipped:
                logger.warning(f"Skipped {skipped} malformed entries on directory page {page}")

            page_info = data.get("pageInfo") or {}
            if not isinstance(page_info, dict):
                self._fail(f"Stopped at page {page}: unexpected pageInfo shape")
                break
            end_cursor = page_info.get("endCursor")
            if not isinstance(end_cursor, str):
                end_cursor = None
            has_next_page = bool(page_info.get("hasNextPage")) and bool(end_cursor)

            try:
                self._save_cursor(end_cursor, has_next_page)
            except PersistenceError as e:
                self._fail(f"Could not save pagination cursor: {e}")
                break

            if not has_next_page:
                logger.info("Directory sweep reached the last page")
                break
            cursor = end_cursor

        self._records_collected = len(records)
        logger.info(f"Collected {len(records)} records from directory")
        return records
