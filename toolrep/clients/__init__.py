"""HTTP clients for external sources."""

from toolrep.clients.github import (
    GitHubClient,
    extract_license,
    is_github_url,
    parse_repo_url,
    parse_timestamp,
)
from toolrep.clients.rate_limiter import RateLimiter
from toolrep.clients.response_cache import ResponseCache

__all__ = [
    "GitHubClient",
    "RateLimiter",
    "ResponseCache",
    "extract_license",
    "is_github_url",
    "parse_repo_url",
    "parse_timestamp",
]
