"""Storage file models for the catalog, score history and source status."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from toolrep.models.common import _utc_now
from toolrep.models.model_score import ReputationScore
from toolrep.models.model_tool import Tool


class SourceState(str, Enum):
    """Outcome of the last run of a source adapter."""

    ACTIVE = "active"
    ERROR = "error"


class SourceStatus(BaseModel):
    """Per-adapter run status and pagination cursor."""

    name: str
    base_url: str | None = None
    status: SourceState = SourceState.ACTIVE
    last_run_at: datetime | None = None
    error_message: str | None = None
    records_collected: int = Field(default=0, ge=0)

    # Pagination, only used by cursor-paginated sources
    end_cursor: str | None = None
    has_next_page: bool = False


class ToolsFile(BaseModel):
    """Catalog file stored in data/catalog/tools.json."""

    version: str = Field(default="1.0")
    updated_at: datetime = Field(default_factory=_utc_now)
    tools: list[Tool] = Field(default_factory=list)


class ScoresFile(BaseModel):
    """Append-only score history stored in data/scores/history.json."""

    version: str = Field(default="1.0")
    updated_at: datetime = Field(default_factory=_utc_now)
    scores: list[ReputationScore] = Field(default_factory=list)


class SourceStatusFile(BaseModel):
    """Source status file stored in data/sources/status.json."""

    version: str = Field(default="1.0")
    updated_at: datetime = Field(default_factory=_utc_now)
    sources: dict[str, SourceStatus] = Field(default_factory=dict, description="Key: adapter name")
