import os
from pathlib import Path

DEFAULT_DATA_DIR = Path(
    os.getenv("TOOLREP_DATA_DIR", "") or Path(__file__).parent.parent.resolve() / "data"
).absolute()

# Staleness and scheduling
STALENESS_HOURS = 24  # Data or scores older than this are recomputed
COLLECTION_INTERVAL_SECONDS = 24 * 3600  # Once daily
SCORING_INTERVAL_SECONDS = 24 * 3600  # Once daily

# Score history
HISTORY_KEEP_COUNT = 20  # Rows kept per tool after pruning
HISTORY_DEFAULT_LIMIT = 10
TREND_WINDOW = 5  # Rows read when computing a trend
TREND_THRESHOLD = 3  # Points of change before a trend is reported

# GitHub API
GITHUB_API_URL = "https://api.github.com"
GITHUB_TIMEOUT_SECONDS = 30.0
GITHUB_MAX_RETRIES = 3
GITHUB_RESPONSE_CACHE_TTL = 600  # 10 minutes
GITHUB_COMMIT_SAMPLE_SIZE = 100

# Directory API
DIRECTORY_API_URL = os.getenv("TOOLREP_DIRECTORY_URL", "https://glama.ai/api/mcp/v1/servers")
DIRECTORY_PAGE_SIZE = 50
DIRECTORY_MAX_PAGES = 3  # Page fetches per collection run
DIRECTORY_TIMEOUT_SECONDS = 30.0

# Source names (also used as status keys and --source values)
SOURCE_DIRECTORY = "directory"
SOURCE_GITHUB = "github"

# Factor names (also map to ReputationScore columns as "{name}_score")
FACTOR_REPO_ACTIVITY = "repo_activity"
FACTOR_MAINTENANCE = "maintenance"
FACTOR_OPEN_GOVERNANCE = "open_governance"
FACTOR_LICENSE = "license"
FACTOR_NAMES = (
    FACTOR_REPO_ACTIVITY,
    FACTOR_MAINTENANCE,
    FACTOR_OPEN_GOVERNANCE,
    FACTOR_LICENSE,
)
