"""Drives collection runs: adapters, then normalization, then persistence."""

import asyncio
import logging
import time
from collections.abc import Iterable
from datetime import datetime, timedelta

from toolrep.adapters.base import SourceAdapter
from toolrep.collection.normalizer import SCALAR_FIELDS, RecordNormalizer
from toolrep.consts import COLLECTION_INTERVAL_SECONDS, STALENESS_HOURS
from toolrep.errors import PersistenceError
from toolrep.models.common import _utc_now
from toolrep.models.model_runs import CollectionRunResult
from toolrep.models.model_tool import CanonicalRecord, SourceRecord, Tool
from toolrep.scheduler import PeriodicTask
from toolrep.storage.base import CatalogStore

logger = logging.getLogger(__name__)


class CollectionOrchestrator:
    """Runs collection on demand and on a fixed schedule.

    Only one run executes at a time. A trigger that arrives while a run is
    in progress is dropped, not queued.
    """

    def __init__(
        self,
        store: CatalogStore,
        adapters: list[SourceAdapter],
        normalizer: RecordNormalizer | None = None,
        staleness_hours: float = STALENESS_HOURS,
        interval_seconds: float = COLLECTION_INTERVAL_SECONDS,
    ):
        """Initialize CollectionOrchestrator.

        Args:
            store: Catalog store
            adapters: Source adapters in source order (first wins merge conflicts)
            normalizer: RecordNormalizer instance
            staleness_hours: Age of the newest scan after which start() collects
            interval_seconds: Period of scheduled runs
        """
        self.store = store
        self.adapters = adapters
        self.normalizer = normalizer or RecordNormalizer()
        self.staleness_hours = staleness_hours
        self._scheduler = PeriodicTask(
            interval_seconds, self.trigger_collection, name="collection"
        )
        self._is_collecting = False
        self.last_result: CollectionRunResult | None = None

    @property
    def is_collecting(self) -> bool:
        return self._is_collecting

    # === LIFECYCLE ===

    def should_collect_on_startup(self) -> bool:
        """Collect when the catalog is empty or its newest scan is stale."""
        try:
            if self.store.count_tools() == 0:
                return True
            last_scan = self.store.latest_scan_time()
        except PersistenceError as e:
            logger.error(f"Could not read catalog state, collecting: {e}")
            return True

        if last_scan is None:
            return True
        return last_scan < _utc_now() - timedelta(hours=self.staleness_hours)

    async def start(self) -> None:
        """Collect if data is stale, then schedule periodic runs."""
        if self.should_collect_on_startup():
            logger.info("Catalog empty or stale, collecting on startup")
            await self.trigger_collection()
        self._scheduler.start()

    async def stop(self) -> None:
        await self._scheduler.stop()

    # === RUNS ===

    async def trigger_collection(self, sources: Iterable[str] | None = None) -> bool:
        """Run one collection unless one is already in progress.

        Args:
            sources: Adapter names to run. None runs every adapter.

        Returns:
            True if a run was started, False if it was skipped.
        """
        if self._is_collecting:
            logger.info("Collection already in progress, skipping trigger")
            return False

        self._is_collecting = True
        try:
            self.last_result = await self._collect(sources)
        except Exception as e:
            # A run never propagates to the trigger caller
            logger.error(f"Collection run failed: {e}", exc_info=True)
        finally:
            self._is_collecting = False
        return True

    def _select_adapters(self, sources: Iterable[str] | None) -> list[SourceAdapter]:
        if sources is None:
            return list(self.adapters)

        wanted = set(sources)
        unknown = wanted - {a.name for a in self.adapters}
        if unknown:
            logger.warning(f"Ignoring unknown sources: {sorted(unknown)}")
        return [a for a in self.adapters if a.name in wanted]

    async def _run_adapter(self, adapter: SourceAdapter) -> list[SourceRecord]:
        error: str | None = None
        records: list[SourceRecord] = []
        try:
            records = await adapter.collect()
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error(f"Adapter {adapter.name} failed: {error}")
        finally:
            adapter.update_status(error)
        logger.info(f"Source {adapter.name}: {len(records)} records")
        return records

    async def _collect(self, sources: Iterable[str] | None) -> CollectionRunResult:
        started_at = _utc_now()
        start_time = time.time()
        adapters = self._select_adapters(sources)
        logger.info(f"Starting collection from {[a.name for a in adapters]}")

        record_sets = await asyncio.gather(*[self._run_adapter(a) for a in adapters])
        canonical = self.normalizer.normalize(list(record_sets))

        created = updated = 0
        failures: dict[str, str] = {}
        scanned_at = _utc_now()
        for record in canonical:
            try:
                if self._persist(record, scanned_at):
                    created += 1
                else:
                    updated += 1
            except PersistenceError as e:
                failures[record.url] = str(e)
                logger.error(f"Failed to persist {record.url}: {e}")
            except Exception as e:
                failures[record.url] = str(e)
                logger.error(f"Unexpected error persisting {record.url}: {e}")

        result = CollectionRunResult(
            sources=[a.name for a in adapters],
            records_collected=sum(len(r) for r in record_sets),
            created=created,
            updated=updated,
            failed=len(failures),
            failures=failures,
            started_at=started_at,
            duration_seconds=time.time() - start_time,
        )
        logger.info(
            f"Collection finished: {result.created} created, {result.updated} updated, "
            f"{result.failed} failed"
        )
        return result

    def _persist(self, record: CanonicalRecord, scanned_at: datetime) -> bool:
        """Create or update the tool for a merged record.

        Returns:
            True if a new tool was created, False if an existing one was updated.
        """
        existing = self.store.find_tool_by_url(record.url)
        if existing is None:
            tool = Tool(
                url=record.url,
                name=record.name or "",
                description=record.description,
                repository_url=record.repository_url,
                license=record.license,
                owner=record.owner,
                owner_type=record.owner_type,
                categories=record.categories,
                capabilities=record.capabilities,
                metrics=record.metrics,
                last_scanned_at=scanned_at,
            )
            self.store.create_tool(tool)
            logger.debug(f"Created tool {tool.id} for {record.url}")
            return True

        # Empty merged values leave stored values in place
        update: dict = {
            field: getattr(record, field) for field in SCALAR_FIELDS if getattr(record, field)
        }
        if record.metrics is not None:
            update["metrics"] = record.metrics
        update["last_scanned_at"] = scanned_at
        tool = self.store.update_tool(existing.model_copy(update=update))

        if record.categories or record.capabilities:
            self.store.replace_relations(
                tool.id,
                categories=record.categories or tool.categories,
                capabilities=record.capabilities or tool.capabilities,
            )
        return False
