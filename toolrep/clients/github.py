"""GitHub REST API client shared by the enrichment adapter and the analyzers.

Implements:
- Exponential backoff with jitter on rate limits (429, exhausted 403) and 5xx
- Short-lived response caching so analyzers scoring one tool share requests
- Contributor counting through the Link header of a one-per-page listing
"""

import asyncio
import logging
import os
from datetime import datetime
from typing import Any

import httpx

from toolrep.clients.rate_limiter import RateLimiter
from toolrep.clients.response_cache import ResponseCache
from toolrep.consts import (
    GITHUB_API_URL,
    GITHUB_COMMIT_SAMPLE_SIZE,
    GITHUB_MAX_RETRIES,
    GITHUB_RESPONSE_CACHE_TTL,
    GITHUB_TIMEOUT_SECONDS,
)
from toolrep.errors import MalformedSourceDataError, SourceUnavailableError
from toolrep.models.model_tool import RepoMetrics

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


def is_github_url(url: str | None) -> bool:
    """Check whether a URL points at github.com."""
    return bool(url) and "github.com" in url


def parse_repo_url(url: str | None) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub repository URL.

    Accepts https, ssh-style and bare forms, and strips a trailing ``.git``.

    Returns:
        (owner, repo) tuple, or None if the URL is not a GitHub repository URL.
    """
    if not is_github_url(url):
        return None

    path = url.split("github.com", 1)[1].lstrip("/:")
    path = path.split("?", 1)[0].split("#", 1)[0]
    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        return None

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        return None
    return owner, repo


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the GitHub API."""
    if not value:
        return None
    if not isinstance(value, str):
        raise MalformedSourceDataError(f"Expected timestamp string, got {type(value).__name__}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedSourceDataError(f"Invalid timestamp: {value}") from e


def extract_license(repo_data: dict[str, Any]) -> str | None:
    """Pick the SPDX identifier from repository data, falling back to the license name."""
    license_info = repo_data.get("license")
    if not isinstance(license_info, dict):
        return None
    spdx_id = license_info.get("spdx_id")
    if spdx_id and spdx_id != "NOASSERTION":
        return spdx_id
    return license_info.get("name") or license_info.get("key")


class GitHubClient:
    """Async GitHub API client with retry and caching."""

    BASE_URL = GITHUB_API_URL

    def __init__(
        self,
        token: str | None = None,
        timeout: float = GITHUB_TIMEOUT_SECONDS,
        max_retries: int = GITHUB_MAX_RETRIES,
        cache_ttl_seconds: float = GITHUB_RESPONSE_CACHE_TTL,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GitHub client.

        Args:
            token: API token. None = read from env (GITHUB_TOKEN).
            timeout: Per-request timeout in seconds.
            max_retries: Retries on rate limits, server and transport errors.
            cache_ttl_seconds: Response cache TTL. 0 disables caching.
            rate_limiter: Backoff policy. Defaults to RateLimiter().
            transport: Optional httpx transport, used to stub the API in tests.
        """
        self.token = token if token is not None else os.getenv("GITHUB_TOKEN", "").strip()
        self.timeout = timeout
        self.max_retries = max_retries
        self._rate_limiter = rate_limiter or RateLimiter()
        self._cache = ResponseCache(ttl_seconds=cache_ttl_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.token:
            logger.info("GITHUB_TOKEN not set, using unauthenticated GitHub API (60 req/h)")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
        dropped = self._cache.clear()
        if dropped:
            logger.debug(f"Dropped {dropped} cached GitHub responses")

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        return (
            response.status_code == 403
            and response.headers.get("x-ratelimit-remaining") == "0"
        )

    def _retry_after(self, response: httpx.Response) -> float | None:
        value = response.headers.get("retry-after")
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            return None

    async def _request(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """Make a GET request with retry on rate limits and transient failures.

        Args:
            url: Endpoint relative to the API base URL, or an absolute URL.
            params: Query parameters.

        Returns:
            The successful (2xx) response.

        Raises:
            SourceUnavailableError: On non-retryable HTTP errors or when retries run out.
        """
        client = await self._get_client()
        attempt = 0

        while True:
            try:
                response = await client.get(url, params=params)
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    raise SourceUnavailableError(
                        f"GitHub request failed: {url}: {e}", source="github"
                    ) from e
                attempt += 1
                delay = self._rate_limiter.backoff()
                logger.warning(f"Transport error on {url} ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            retryable = (
                self._is_rate_limited(response)
                or response.status_code in RETRYABLE_STATUS_CODES
            )
            if retryable and attempt < self.max_retries:
                attempt += 1
                delay = self._rate_limiter.backoff(self._retry_after(response))
                logger.warning(
                    f"GitHub returned {response.status_code} for {url}, retrying in {delay:.1f}s "
                    f"({self._rate_limiter.consecutive_errors} consecutive errors)"
                )
                await asyncio.sleep(delay)
                continue

            if response.is_success:
                self._rate_limiter.reset()
                return response

            raise SourceUnavailableError(
                f"GitHub returned {response.status_code} for {url}",
                source="github",
                status_code=response.status_code,
            )

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        use_cache: bool = True,
    ) -> Any:
        if use_cache:
            cached = self._cache.get(url, params)
            if cached is not None:
                logger.debug(f"Cache hit: {url}")
                return cached

        response = await self._request(url, params)
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedSourceDataError(f"Non-JSON response from {url}", source="github") from e

        if use_cache:
            self._cache.set(url, params, data)
        return data

    # === REPOSITORY ENDPOINTS ===

    async def get_repo(self, owner: str, repo: str) -> dict[str, Any]:
        """Fetch repository data (/repos/{owner}/{repo})."""
        data = await self._get_json(f"/repos/{owner}/{repo}")
        if not isinstance(data, dict):
            raise MalformedSourceDataError(
                f"Expected object for {owner}/{repo}, got {type(data).__name__}", source="github"
            )
        return data

    async def count_contributors(self, owner: str, repo: str) -> int:
        """Count contributors (anonymous included).

        Requests one contributor per page and reads the page number of the
        ``rel="last"`` link, which equals the total count.
        """
        endpoint = f"/repos/{owner}/{repo}/contributors"
        params = {"per_page": 1, "anon": 1}
        cache_key = f"{endpoint}#count"

        cached = self._cache.get(cache_key, params)
        if cached is not None:
            return cached

        response = await self._request(endpoint, params)
        last = response.links.get("last", {}).get("url")
        if last:
            page = httpx.URL(last).params.get("page")
            try:
                count = int(page) if page else 1
            except ValueError as e:
                raise MalformedSourceDataError(
                    f"Invalid contributors pagination link: {last}", source="github"
                ) from e
        elif response.status_code == 204 or not response.content:
            count = 0
        else:
            try:
                body = response.json()
            except ValueError as e:
                raise MalformedSourceDataError(
                    f"Non-JSON contributors response for {owner}/{repo}", source="github"
                ) from e
            count = len(body) if isinstance(body, list) else 0

        self._cache.set(cache_key, params, count)
        return count

    async def list_commits(
        self,
        owner: str,
        repo: str,
        per_page: int = GITHUB_COMMIT_SAMPLE_SIZE,
    ) -> list[dict[str, Any]]:
        """List the most recent commits. Empty repositories yield an empty list."""
        try:
            data = await self._get_json(
                f"/repos/{owner}/{repo}/commits", params={"per_page": per_page}
            )
        except SourceUnavailableError as e:
            # 409 Conflict: repository is empty
            if e.status_code == 409:
                return []
            raise
        if not isinstance(data, list):
            raise MalformedSourceDataError(f"Expected commit list for {owner}/{repo}")
        return data

    async def list_contents(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List the repository root directory."""
        data = await self._get_json(f"/repos/{owner}/{repo}/contents")
        if not isinstance(data, list):
            raise MalformedSourceDataError(f"Expected content list for {owner}/{repo}")
        return data

    async def fetch_text(self, url: str) -> str:
        """Download a raw file (e.g. a README download_url)."""
        cached = self._cache.get(url)
        if cached is not None:
            return cached
        response = await self._request(url)
        text = response.text
        self._cache.set(url, None, text)
        return text

    async def get_license(self, owner: str, repo: str) -> str | None:
        """Resolve the repository license identifier, if GitHub detected one."""
        return extract_license(await self.get_repo(owner, repo))

    async def fetch_metrics(self, owner: str, repo: str) -> RepoMetrics:
        """Fetch repository metrics (stars, forks, watchers, issues, push, contributors)."""
        data = await self.get_repo(owner, repo)
        contributors = await self.count_contributors(owner, repo)
        try:
            return RepoMetrics(
                stars=data.get("stargazers_count") or 0,
                forks=data.get("forks_count") or 0,
                watchers=data.get("subscribers_count") or 0,
                open_issues_count=data.get("open_issues_count") or 0,
                last_push_at=parse_timestamp(data.get("pushed_at")),
                contributors_count=contributors,
            )
        except ValueError as e:
            raise MalformedSourceDataError(
                f"Invalid metrics for {owner}/{repo}: {e}", source="github"
            ) from e
