"""Abstract store used by the collection and scoring pipelines.

Implementations may use files, databases, or other storage backends. Writes
are assumed to be serialized by the backend; callers apply no extra locking.
All failures surface as PersistenceError.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from toolrep.models.model_score import ReputationScore
from toolrep.models.model_storage import SourceStatus
from toolrep.models.model_tool import Capability, Tool


class CatalogStore(ABC):
    """Persistent store for tools, score history and source status."""

    # === TOOLS ===

    @abstractmethod
    def count_tools(self) -> int:
        """Return the number of stored tools."""
        ...

    @abstractmethod
    def list_tools(self, active_only: bool = False) -> list[Tool]:
        """List stored tools in insertion order."""
        ...

    @abstractmethod
    def get_tool(self, tool_id: str) -> Tool | None:
        """Get a tool by its ID."""
        ...

    @abstractmethod
    def find_tool_by_url(self, url: str) -> Tool | None:
        """Get a tool by its identity key (exact match)."""
        ...

    @abstractmethod
    def create_tool(self, tool: Tool) -> Tool:
        """Insert a new tool. Fails if its identity key is already taken."""
        ...

    @abstractmethod
    def update_tool(self, tool: Tool) -> Tool:
        """Overwrite a stored tool's fields. Fails if the tool is unknown."""
        ...

    @abstractmethod
    def replace_relations(
        self,
        tool_id: str,
        categories: list[str],
        capabilities: list[Capability],
    ) -> Tool:
        """Replace a tool's categories and capabilities as a whole."""
        ...

    @abstractmethod
    def latest_scan_time(self) -> datetime | None:
        """Return the most recent last_scanned_at across all tools."""
        ...

    # === SCORES ===

    @abstractmethod
    def insert_score(self, score: ReputationScore) -> ReputationScore:
        """Append an immutable score row."""
        ...

    @abstractmethod
    def list_scores(self, tool_id: str, limit: int | None = None) -> list[ReputationScore]:
        """List a tool's score rows, most recent first."""
        ...

    @abstractmethod
    def delete_scores(self, score_ids: list[str]) -> int:
        """Delete score rows by ID and return how many were removed."""
        ...

    @abstractmethod
    def count_scores(self) -> int:
        """Return the number of score rows across all tools."""
        ...

    @abstractmethod
    def latest_score_time(self) -> datetime | None:
        """Return the most recent calculated_at across all score rows."""
        ...

    # === SOURCE STATUS ===

    @abstractmethod
    def get_source_status(self, name: str) -> SourceStatus | None:
        """Get the status row of a source adapter."""
        ...

    @abstractmethod
    def save_source_status(self, status: SourceStatus) -> SourceStatus:
        """Create or replace the status row of a source adapter."""
        ...

    @abstractmethod
    def list_source_statuses(self) -> list[SourceStatus]:
        """List all source status rows."""
        ...
