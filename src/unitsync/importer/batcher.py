"""
unitsync - Import Batcher

Splits discovered units into new, existing and stale workspace units, then
imports the new ones in bounded batches.
"""
from pathlib import Path
from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence, Set, TypeVar

from loguru import logger

from src.core.errors import ImportFailure, SyncError
from src.core.progress import ProgressMonitor
from src.unitsync.digest.gate import DigestGate
from src.unitsync.importer.engine import ConfigurationManager
from src.unitsync.models import BUILD_NATURE, ImportPlan, ImportResult, ProjectInfo
from src.unitsync.workspace.store import WorkspaceStore, WorkspaceUnitHandle

if TYPE_CHECKING:
    from src.unitsync.sources.downloader import SourceDownloadService

T = TypeVar("T")

MAX_IMPORT_BATCH = 10


def partition(items: Sequence[T], size: int) -> List[List[T]]:
    """Consecutive chunks of at most ``size`` items, in input order."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class ImportBatcher:
    """
    Plans and executes the import of discovered units.

    Import Plan:
    - Not in the workspace: imported, digest refreshed
    - In the workspace without the build nature: deleted (forced, content
      kept) and imported again, digest refreshed
    - In the workspace with the build nature: existing

    Batches are at most MAX_IMPORT_BATCH units and are imported one after
    the other. After each batch, source downloads are scheduled for the
    newly imported units when enabled.
    """

    def __init__(
        self,
        store: WorkspaceStore,
        engine: ConfigurationManager,
        digest_gate: DigestGate,
        downloader: Optional["SourceDownloadService"] = None,
        download_sources: bool = False,
        batch_size: int = MAX_IMPORT_BATCH,
    ):
        self.store = store
        self.engine = engine
        self.digest_gate = digest_gate
        self.downloader = downloader
        self.download_sources = download_sources
        self.batch_size = batch_size

    # ==================== Planning ====================

    def plan(
        self,
        discovered: Sequence[ProjectInfo],
        workspace_units: Mapping[Path, WorkspaceUnitHandle],
    ) -> ImportPlan:
        """
        Partition ``discovered`` against ``workspace_units`` (keyed by location).

        Refreshes digests of new and stale units, so run it off the event loop.
        """
        plan = ImportPlan()
        for info in discovered:
            unit = workspace_units.get(info.directory)
            if unit is None:
                self.digest_gate.refresh(info.descriptor_path)
                plan.to_import.append(info)
            elif unit.has_nature(BUILD_NATURE):
                plan.existing.append(unit)
            else:
                self.digest_gate.refresh(info.descriptor_path)
                plan.reimport.append(unit)
                plan.to_import.append(info)

        logger.debug(
            f"Import plan: {len(plan.to_import)} to import "
            f"({len(plan.reimport)} re-imports), {len(plan.existing)} existing"
        )
        return plan

    # ==================== Execution ====================

    async def execute(self, plan: ImportPlan, monitor: Optional[ProgressMonitor] = None) -> List[ImportResult]:
        """
        Delete stale units, then import ``plan.to_import`` batch by batch.

        Stops between batches when the monitor is canceled and returns the
        results gathered so far.
        """
        monitor = monitor or ProgressMonitor()
        results: List[ImportResult] = []

        blocked = self._delete_stale(plan, results)
        candidates = [info for info in plan.to_import if info.directory not in blocked]
        if not candidates:
            return results

        batches = partition(candidates, self.batch_size)
        if len(batches) > 1:
            logger.info(f"Units to import: {len(candidates)} in {len(batches)} batches")
        monitor.begin_task("Importing units", len(candidates))

        for index, batch in enumerate(batches, 1):
            if monitor.is_canceled:
                logger.info(f"Import canceled before batch {index}/{len(batches)}")
                break
            batch_results = await self._import_batch(batch, monitor)
            results.extend(batch_results)
            self._schedule_downloads(batch_results)
            logger.debug(f"Batch {index}/{len(batches)} imported ({len(batch)} units)")
        return results

    def _delete_stale(self, plan: ImportPlan, results: List[ImportResult]) -> Set[Path]:
        """Delete units marked for re-import. Returns locations that could not be deleted."""
        blocked: Set[Path] = set()
        by_location = {info.directory: info for info in plan.to_import}
        for unit in plan.reimport:
            logger.info(f"Unit '{unit.name}' lacks the build nature, re-importing it")
            try:
                self.store.delete(unit, force=True)
            except SyncError as e:
                logger.error(f"Cannot delete stale unit '{unit.name}': {e}")
                blocked.add(unit.location)
                info = by_location.get(unit.location)
                if info is not None:
                    results.append(ImportResult(info, error=ImportFailure(f"Cannot replace unit '{unit.name}'", e)))
        return blocked

    async def _import_batch(self, batch: List[ProjectInfo], monitor: ProgressMonitor) -> List[ImportResult]:
        try:
            return await self.engine.import_units(batch, monitor)
        except Exception as e:
            logger.error(f"Import of a batch of {len(batch)} units was rejected: {e}")
            failure = ImportFailure(f"Batch import of {len(batch)} units failed", e)
            return [ImportResult(info, error=failure) for info in batch]

    def _schedule_downloads(self, results: List[ImportResult]):
        if not self.download_sources or self.downloader is None:
            return
        for result in results:
            if result.ok:
                self.downloader.schedule(result.unit)
