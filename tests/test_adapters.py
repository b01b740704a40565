"""Tests for source adapters."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from toolrep.adapters import get_adapters
from toolrep.adapters.directory import DirectoryAdapter, parse_directory_entry
from toolrep.adapters.github import GitHubEnrichmentAdapter
from toolrep.errors import MalformedSourceDataError, SourceUnavailableError
from toolrep.models.model_storage import SourceState
from toolrep.models.model_tool import RepoMetrics, Tool
from toolrep.storage.file_store import FileStore


def entry(slug: str, **extra) -> dict:
    data = {
        "url": f"https://glama.ai/mcp/servers/{slug}",
        "name": slug,
        "description": f"{slug} server",
    }
    data.update(extra)
    return data


# Three pages keyed by the "after" cursor of the request
PAGES = {
    None: {
        "servers": [entry("one")],
        "pageInfo": {"endCursor": "c1", "hasNextPage": True},
    },
    "c1": {
        "servers": [entry("two"), 42, entry("bad", name=["not", "a", "string"])],
        "pageInfo": {"endCursor": "c2", "hasNextPage": True},
    },
    "c2": {
        "servers": [entry("three")],
        "pageInfo": {"endCursor": "c3", "hasNextPage": False},
    },
}


class DirectoryStub:
    """Serves PAGES and records the cursors requested."""

    def __init__(self, pages: dict = PAGES):
        self.pages = pages
        self.cursors: list[str | None] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        cursor = request.url.params.get("after")
        self.cursors.append(cursor)
        return httpx.Response(200, json=self.pages[cursor])


def make_directory(store: FileStore, handler, max_pages: int = 2) -> DirectoryAdapter:
    return DirectoryAdapter(
        store,
        base_url="https://directory.test/api/servers",
        page_size=10,
        max_pages=max_pages,
        transport=httpx.MockTransport(handler),
    )


class TestParseDirectoryEntry:
    """Tests for mapping directory entries."""

    def test_full_entry(self):
        record = parse_directory_entry(
            entry(
                "weather",
                namespace="acme",
                repository={"url": "https://github.com/acme/weather"},
                spdxLicense={"name": "MIT License"},
                attributes=["hosting:remote", {"name": "weather"}],
                tools=[
                    {
                        "name": "get_forecast",
                        "description": "Forecast",
                        "inputSchema": {"type": "object"},
                    },
                    {"description": "unnamed"},
                ],
            )
        )

        assert record.url == "https://glama.ai/mcp/servers/weather"
        assert record.repository_url == "https://github.com/acme/weather"
        assert record.license == "MIT License"
        assert record.owner == "acme"
        assert record.categories == ["hosting:remote", "weather"]
        assert [c.name for c in record.capabilities] == ["get_forecast"]
        assert record.capabilities[0].details.input_schema == {"type": "object"}

    def test_null_nested_fields(self):
        record = parse_directory_entry(entry("x", repository=None, spdxLicense=None))
        assert record.repository_url is None
        assert record.license is None

    def test_blank_strings_become_none(self):
        assert parse_directory_entry(entry("x", description="  ")).description is None

    @pytest.mark.parametrize(
        "raw",
        [
            42,
            {"url": 5},
            entry("x", repository="https://github.com/a/b"),
            entry("x", attributes=5),
            entry("x", tools=7),
        ],
    )
    def test_malformed(self, raw):
        with pytest.raises(MalformedSourceDataError):
            parse_directory_entry(raw)


class TestDirectoryAdapter:
    """Tests for cursor-paginated collection."""

    @pytest.mark.asyncio
    async def test_collects_up_to_max_pages(self, store: FileStore):
        stub = DirectoryStub()
        adapter = make_directory(store, stub)

        records = await adapter.collect()
        await adapter.aclose()

        assert [r.name for r in records] == ["one", "two"]
        assert stub.cursors == [None, "c1"]
        status = store.get_source_status("directory")
        assert status.end_cursor == "c2"
        assert status.has_next_page is True

    @pytest.mark.asyncio
    async def test_resumes_then_restarts(self, store: FileStore):
        stub = DirectoryStub()
        adapter = make_directory(store, stub)

        await adapter.collect()
        second = await adapter.collect()
        third = await adapter.collect()
        await adapter.aclose()

        assert [r.name for r in second] == ["three"]
        assert [r.name for r in third] == ["one", "two"]
        assert stub.cursors == [None, "c1", "c2", None, "c1"]

    @pytest.mark.asyncio
    async def test_request_parameters(self, store: FileStore):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"servers": [], "pageInfo": {}})

        adapter = make_directory(store, handler)
        await adapter.collect()
        await adapter.aclose()

        assert len(seen) == 1
        assert seen[0].url.params["first"] == "10"
        assert "after" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_http_error_keeps_earlier_pages(self, store: FileStore):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("after") == "c1":
                return httpx.Response(502)
            return httpx.Response(200, json=PAGES[None])

        adapter = make_directory(store, handler, max_pages=3)
        records = await adapter.collect()
        adapter.update_status()
        await adapter.aclose()

        assert [r.name for r in records] == ["one"]
        status = store.get_source_status("directory")
        assert status.status == SourceState.ERROR
        assert "502" in status.error_message
        assert status.records_collected == 1
        assert status.end_cursor == "c1"

    @pytest.mark.asyncio
    async def test_unexpected_page_shape(self, store: FileStore):
        adapter = make_directory(store, lambda request: httpx.Response(200, json=["x"]))

        records = await adapter.collect()
        await adapter.aclose()

        assert records == []
        assert adapter._last_error is not None

    @pytest.mark.asyncio
    async def test_wrongly_typed_fields_skip_entry(self, store: FileStore):
        page = {
            "servers": [entry("good"), entry("bad", attributes=5), entry("worse", tools=7)],
            "pageInfo": {"endCursor": "c1", "hasNextPage": False},
        }
        adapter = make_directory(store, lambda request: httpx.Response(200, json=page))

        records = await adapter.collect()
        await adapter.aclose()

        assert [r.name for r in records] == ["good"]
        assert adapter._last_error is None

    @pytest.mark.asyncio
    async def test_malformed_page_info_stops_paging(self, store: FileStore):
        pages = {
            None: PAGES[None],
            "c1": {"servers": [entry("two")], "pageInfo": ["c2"]},
        }
        stub = DirectoryStub(pages)
        adapter = make_directory(store, stub, max_pages=3)

        records = await adapter.collect()
        adapter.update_status()
        await adapter.aclose()

        assert [r.name for r in records] == ["one", "two"]
        assert stub.cursors == [None, "c1"]
        status = store.get_source_status("directory")
        assert status.status == SourceState.ERROR
        assert "pageInfo" in status.error_message
        assert status.end_cursor == "c1"

    @pytest.mark.asyncio
    async def test_successful_run_clears_error(self, store: FileStore):
        failing = make_directory(store, lambda request: httpx.Response(500))
        await failing.collect()
        failing.update_status()
        await failing.aclose()

        adapter = make_directory(store, DirectoryStub())
        await adapter.collect()
        adapter.update_status()
        await adapter.aclose()

        status = store.get_source_status("directory")
        assert status.status == SourceState.ACTIVE
        assert status.error_message is None
        assert status.end_cursor == "c2"


@pytest.fixture
def github_client() -> MagicMock:
    client = MagicMock()
    client.get_repo = AsyncMock(
        return_value={
            "name": "weather",
            "description": "Weather tools",
            "license": {"spdx_id": "Apache-2.0"},
            "owner": {"login": "acme", "type": "Organization"},
        }
    )
    client.fetch_metrics = AsyncMock(return_value=RepoMetrics(stars=10, forks=2))
    return client


class TestGitHubEnrichmentAdapter:
    """Tests for enrichment of stored tools."""

    @pytest.mark.asyncio
    async def test_enriches_github_tools_only(self, store: FileStore, github_client):
        store.create_tool(Tool(url="u1", repository_url="https://github.com/acme/weather"))
        store.create_tool(Tool(url="u2", repository_url="https://gitlab.com/acme/x"))
        store.create_tool(Tool(url="u3"))
        store.create_tool(
            Tool(url="u4", repository_url="https://github.com/acme/old", is_active=False)
        )
        adapter = GitHubEnrichmentAdapter(store, github_client)

        records = await adapter.collect()

        assert len(records) == 1
        record = records[0]
        assert record.url == "u1"
        assert record.repository_url == "https://github.com/acme/weather"
        assert record.license == "Apache-2.0"
        assert record.owner == "acme"
        assert record.owner_type == "organization"
        assert record.metrics.stars == 10
        github_client.get_repo.assert_awaited_once_with("acme", "weather")

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(self, store: FileStore, github_client):
        store.create_tool(Tool(url="u1", repository_url="https://github.com/acme/gone"))
        store.create_tool(Tool(url="u2", repository_url="https://github.com/acme/weather"))
        github_client.get_repo.side_effect = [
            SourceUnavailableError("not found", status_code=404),
            github_client.get_repo.return_value,
        ]
        adapter = GitHubEnrichmentAdapter(store, github_client)

        records = await adapter.collect()
        adapter.update_status()

        assert [r.url for r in records] == ["u2"]
        assert store.get_source_status("github").status == SourceState.ACTIVE

    @pytest.mark.asyncio
    async def test_all_failures_mark_source_error(self, store: FileStore, github_client):
        store.create_tool(Tool(url="u1", repository_url="https://github.com/acme/weather"))
        github_client.get_repo.side_effect = SourceUnavailableError("rate limited")
        adapter = GitHubEnrichmentAdapter(store, github_client)

        records = await adapter.collect()
        adapter.update_status()

        assert records == []
        status = store.get_source_status("github")
        assert status.status == SourceState.ERROR
        assert status.base_url == "https://api.github.com"

    @pytest.mark.asyncio
    async def test_empty_catalog(self, store: FileStore, github_client):
        records = await GitHubEnrichmentAdapter(store, github_client).collect()
        assert records == []
        github_client.get_repo.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_stop_others(self, store: FileStore, github_client):
        store.create_tool(Tool(url="u1", repository_url="https://github.com/acme/broken"))
        store.create_tool(Tool(url="u2", repository_url="https://github.com/acme/weather"))
        github_client.get_repo.side_effect = [
            TypeError("unexpected payload"),
            github_client.get_repo.return_value,
        ]
        adapter = GitHubEnrichmentAdapter(store, github_client)

        records = await adapter.collect()

        assert [r.url for r in records] == ["u2"]


class TestGetAdapters:
    """Tests for the adapter registry."""

    def test_source_order(self, store: FileStore, github_client):
        adapters = get_adapters(store, github_client, directory_url="https://directory.test")

        assert [a.name for a in adapters] == ["directory", "github"]
        assert adapters[0].base_url == "https://directory.test"
