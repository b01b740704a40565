"""Base source adapter defining the collection contract."""

import logging
from abc import ABC, abstractmethod

from toolrep.errors import PersistenceError
from toolrep.models.common import _utc_now
from toolrep.models.model_storage import SourceState, SourceStatus
from toolrep.models.model_tool import SourceRecord
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """Abstract base class for all source adapters.

    An adapter wraps one external source and turns it into partial
    SourceRecords. ``collect`` never raises: failures are logged, remembered
    for the status row and yield a partial or empty list.
    """

    base_url: str | None = None

    def __init__(self, store: CatalogStore):
        self.store = store
        self._records_collected = 0
        self._last_error: str | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the source identifier (e.g., 'directory', 'github')."""
        ...

    @abstractmethod
    async def collect(self) -> list[SourceRecord]:
        """Collect partial records from the source.

        Returns:
            Records gathered before any failure. Never raises.
        """
        ...

    async def aclose(self) -> None:
        """Release resources held by the adapter."""
        return None

    def _load_status(self) -> SourceStatus:
        status = self.store.get_source_status(self.name)
        if status is None:
            status = SourceStatus(name=self.name, base_url=self.base_url)
        return status

    def update_status(self, error: str | None = None) -> None:
        """Record the outcome of the last run.

        Pagination fields are preserved. Failures to write are logged,
        since status tracking must not break a collection run.

        Args:
            error: Error text from the caller. Falls back to the last
                failure seen inside collect().
        """
        error = error or self._last_error
        try:
            status = self._load_status()
            status = status.model_copy(
                update={
                    "base_url": self.base_url,
                    "last_run_at": _utc_now(),
                    "status": SourceState.ERROR if error else SourceState.ACTIVE,
                    "error_message": error,
                    "records_collected": self._records_collected,
                }
            )
            self.store.save_source_status(status)
        except PersistenceError as e:
            logger.error(f"Failed to update status for source {self.name}: {e}")

    def _begin_run(self) -> None:
        self._records_collected = 0
        self._last_error = None

    def _fail(self, message: str) -> None:
        logger.warning(f"[{self.name}] {message}")
        self._last_error = message
