"""File-based store for the tool catalog, score history and source status.

Each collection is a single JSON document loaded lazily and written through
on every mutation.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ValidationError

from toolrep.consts import DEFAULT_DATA_DIR
from toolrep.errors import PersistenceError
from toolrep.models.common import _utc_now
from toolrep.models.model_score import ReputationScore
from toolrep.models.model_storage import (
    ScoresFile,
    SourceStatus,
    SourceStatusFile,
    ToolsFile,
)
from toolrep.models.model_tool import Capability, Tool
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


class FileStore(CatalogStore):
    """JSON file implementation of CatalogStore.

    Directory structure:
        data/
        ├── catalog/tools.json     # Canonical tools keyed by ID
        ├── scores/history.json    # Append-only score rows
        └── sources/status.json    # Per-adapter status and cursors
    """

    def __init__(self, data_dir: Path | str = DEFAULT_DATA_DIR):
        """Initialize FileStore with data directory.

        Args:
            data_dir: Root directory for all data files.
        """
        self.data_dir = Path(data_dir)
        self._tools_path = self.data_dir / "catalog" / "tools.json"
        self._scores_path = self.data_dir / "scores" / "history.json"
        self._status_path = self.data_dir / "sources" / "status.json"

        self._tools: dict[str, Tool] | None = None
        self._scores: list[ReputationScore] | None = None
        self._statuses: dict[str, SourceStatus] | None = None

    # === FILE HELPERS ===

    def _read(self, path: Path, model: type[BaseModel]) -> BaseModel | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return model.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def _write(self, path: Path, document: BaseModel) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Wrote {path}")

    def _tool_map(self) -> dict[str, Tool]:
        if self._tools is None:
            document = self._read(self._tools_path, ToolsFile)
            tools = document.tools if document else []
            self._tools = {tool.id: tool for tool in tools}
            logger.debug(f"Loaded {len(self._tools)} tools from {self._tools_path}")
        return self._tools

    def _score_list(self) -> list[ReputationScore]:
        if self._scores is None:
            document = self._read(self._scores_path, ScoresFile)
            self._scores = list(document.scores) if document else []
        return self._scores

    def _status_map(self) -> dict[str, SourceStatus]:
        if self._statuses is None:
            document = self._read(self._status_path, SourceStatusFile)
            self._statuses = dict(document.sources) if document else {}
        return self._statuses

    def _flush_tools(self) -> None:
        self._write(self._tools_path, ToolsFile(tools=list(self._tool_map().values())))

    def _flush_scores(self) -> None:
        self._write(self._scores_path, ScoresFile(scores=self._score_list()))

    def _flush_statuses(self) -> None:
        self._write(self._status_path, SourceStatusFile(sources=self._status_map()))

    # === TOOLS ===

    def count_tools(self) -> int:
        return len(self._tool_map())

    def list_tools(self, active_only: bool = False) -> list[Tool]:
        tools = self._tool_map().values()
        return [t.model_copy(deep=True) for t in tools if t.is_active or not active_only]

    def get_tool(self, tool_id: str) -> Tool | None:
        tool = self._tool_map().get(tool_id)
        return tool.model_copy(deep=True) if tool else None

    def find_tool_by_url(self, url: str) -> Tool | None:
        for tool in self._tool_map().values():
            if tool.url == url:
                return tool.model_copy(deep=True)
        return None

    def create_tool(self, tool: Tool) -> Tool:
        tools = self._tool_map()
        if tool.id in tools:
            raise PersistenceError(f"Tool ID already exists: {tool.id}")
        if self.find_tool_by_url(tool.url) is not None:
            raise PersistenceError(f"Tool URL already exists: {tool.url}")

        tools[tool.id] = tool.model_copy(deep=True)
        try:
            self._flush_tools()
        except PersistenceError:
            del tools[tool.id]
            raise
        logger.debug(f"Created tool {tool.id} ({tool.url})")
        return tool.model_copy(deep=True)

    def update_tool(self, tool: Tool) -> Tool:
        tools = self._tool_map()
        previous = tools.get(tool.id)
        if previous is None:
            raise PersistenceError(f"Tool not found: {tool.id}")

        updated = tool.model_copy(deep=True, update={"updated_at": _utc_now()})
        tools[tool.id] = updated
        try:
            self._flush_tools()
        except PersistenceError:
            tools[tool.id] = previous
            raise
        return updated.model_copy(deep=True)

    def replace_relations(
        self,
        tool_id: str,
        categories: list[str],
        capabilities: list[Capability],
    ) -> Tool:
        tool = self.get_tool(tool_id)
        if tool is None:
            raise PersistenceError(f"Tool not found: {tool_id}")
        tool.categories = list(categories)
        tool.capabilities = [c.model_copy(deep=True) for c in capabilities]
        return self.update_tool(tool)

    def latest_scan_time(self) -> datetime | None:
        times = [t.last_scanned_at for t in self._tool_map().values() if t.last_scanned_at]
        return max(times) if times else None

    # === SCORES ===

    def insert_score(self, score: ReputationScore) -> ReputationScore:
        scores = self._score_list()
        scores.append(score)
        try:
            self._flush_scores()
        except PersistenceError:
            scores.pop()
            raise
        return score

    def list_scores(self, tool_id: str, limit: int | None = None) -> list[ReputationScore]:
        # Newest insert first among equal timestamps
        rows = [s for s in reversed(self._score_list()) if s.tool_id == tool_id]
        rows.sort(key=lambda s: s.calculated_at, reverse=True)
        return rows if limit is None else rows[:limit]

    def delete_scores(self, score_ids: list[str]) -> int:
        if not score_ids:
            return 0
        doomed = set(score_ids)
        before = self._score_list()
        kept = [s for s in before if s.id not in doomed]
        removed = len(before) - len(kept)
        if removed == 0:
            return 0

        self._scores = kept
        try:
            self._flush_scores()
        except PersistenceError:
            self._scores = before
            raise
        return removed

    def count_scores(self) -> int:
        return len(self._score_list())

    def latest_score_time(self) -> datetime | None:
        scores = self._score_list()
        return max(s.calculated_at for s in scores) if scores else None

    # === SOURCE STATUS ===

    def get_source_status(self, name: str) -> SourceStatus | None:
        status = self._status_map().get(name)
        return status.model_copy() if status else None

    def save_source_status(self, status: SourceStatus) -> SourceStatus:
        statuses = self._status_map()
        previous = statuses.get(status.name)
        statuses[status.name] = status.model_copy()
        try:
            self._flush_statuses()
        except PersistenceError:
            if previous is None:
                del statuses[status.name]
            else:
                statuses[status.name] = previous
            raise
        return status

    def list_source_statuses(self) -> list[SourceStatus]:
        return [s.model_copy() for s in self._status_map().values()]
