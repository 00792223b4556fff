"""
unitsync - Synchronization Orchestrator

Top-level driver that brings the workspace model in line with the build
descriptors found under one root.
"""
import asyncio
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from src.core.errors import OperationCanceledError, SyncError, WorkspaceUnavailableError
from src.core.progress import ProgressMonitor
from src.core.tasks import JobManager, JobStatus
from src.unitsync.discovery.collector import ProjectGraphCollector
from src.unitsync.discovery.path_filter import PathFilter
from src.unitsync.importer.batcher import ImportBatcher
from src.unitsync.importer.build_support import BuildSupport
from src.unitsync.models import DESCRIPTOR_FILE, ProjectInfo, SyncResult, SyncStatus
from src.unitsync.workspace.store import WorkspaceStore, WorkspaceUnitHandle

UPDATE_FAMILY = "unitsync.update-configuration"


def is_build_root(directory: Path, descriptor_name: str = DESCRIPTOR_FILE) -> bool:
    """Readable directory with a readable descriptor at its top level."""
    directory = Path(directory)
    descriptor = directory / descriptor_name
    return (
        directory.is_dir()
        and os.access(directory, os.R_OK)
        and descriptor.is_file()
        and os.access(descriptor, os.R_OK)
    )


class SyncOrchestrator:
    """
    Discovers, imports and schedules reconfiguration for one workspace root.

    Run:
    1. Snapshot the watermark (last durable save of the workspace)
    2. Discover units (cached, single flight) and drop excluded ones
    3. Plan against the workspace and import in batches
    4. Open and refresh existing units; those whose descriptor changed
       after the watermark are reconfigured by a background job

    Per-unit problems end up in the returned SyncResult. Only an unreadable
    root or an unavailable workspace store raise.
    """

    UPDATE_JOB_NAME = "Update project configuration"

    def __init__(
        self,
        root: Path,
        store: WorkspaceStore,
        collector: ProjectGraphCollector,
        batcher: ImportBatcher,
        build_support: BuildSupport,
        job_manager: JobManager,
        exclusions: Sequence[str] = (),
        enabled: bool = True,
    ):
        self.root = Path(root)
        self.store = store
        self.collector = collector
        self.batcher = batcher
        self.build_support = build_support
        self.job_manager = job_manager
        self.path_filter = PathFilter(exclusions)
        self.enabled = enabled

        self._project_infos: Optional[List[ProjectInfo]] = None
        self._discovery_lock = asyncio.Lock()

    # ==================== Discovery cache ====================

    async def get_project_infos(self, monitor: Optional[ProgressMonitor] = None) -> List[ProjectInfo]:
        """
        Units discovered under the root, computed once until ``reset()``.

        Concurrent callers wait for the scan in flight and share its result.

        Raises:
            OperationCanceledError: if the scan is canceled (nothing is cached)
        """
        async with self._discovery_lock:
            if self._project_infos is None:
                self._project_infos = await self.collector.discover(self.root, monitor)
            return self._project_infos

    def reset(self):
        """Forget the cached discovery; the next call scans again."""
        self._project_infos = None

    def set_exclusions(self, patterns: Sequence[str]):
        self.path_filter = PathFilter(patterns)

    def modules_changed(self, descriptor: Path) -> bool:
        """
        True when ``descriptor`` declares other modules than the cached
        discovery recorded for it. False when nothing is cached yet.

        Raises:
            DescriptorParseError: if the descriptor cannot be read
        """
        if self._project_infos is None:
            return False
        current = self.collector.resolver.read(descriptor, recursive=True)
        cached = next((info for info in self._project_infos if info == current), None)
        if cached is None:
            return True
        return [child.descriptor for child in cached.children] != [child.descriptor for child in current.children]

    # ==================== Checks ====================

    def is_build_root(self, directory: Optional[Path] = None) -> bool:
        return is_build_root(directory if directory is not None else self.root)

    async def applies(self, monitor: Optional[ProgressMonitor] = None) -> bool:
        """True when importing is enabled and at least one unit survives the exclusions."""
        if not self.enabled:
            return False
        if not self.root.is_dir():
            return False
        infos = await self.get_project_infos(monitor)
        return any(not self.path_filter.exclude(info.directory) for info in infos)

    # ==================== Synchronization ====================

    async def synchronize(self, monitor: Optional[ProgressMonitor] = None) -> SyncResult:
        """
        Run one synchronization.

        Raises:
            SyncError: if the root directory cannot be read
            WorkspaceUnavailableError: if the workspace store cannot be queried
        """
        monitor = monitor or ProgressMonitor()
        self._check_root()
        watermark = self._query_store(self.store.last_saved)

        result = SyncResult()
        try:
            discovered = await self.get_project_infos(monitor)
        except OperationCanceledError:
            logger.info(f"Synchronization of {self.root} canceled during discovery")
            result.status = SyncStatus.CANCELED
            return result

        candidates: List[ProjectInfo] = []
        for info in discovered:
            if self.path_filter.exclude(info.directory):
                logger.debug(f"Excluded by filter: {info.directory}")
                result.skipped.append(info)
            else:
                candidates.append(info)

        workspace_units = self._query_store(self.store.list_by_location)
        plan = await asyncio.to_thread(self.batcher.plan, candidates, workspace_units)

        for outcome in await self.batcher.execute(plan, monitor):
            (result.imported if outcome.ok else result.failed).append(outcome)

        if monitor.is_canceled:
            logger.info(f"Synchronization of {self.root} canceled after import")
            result.status = SyncStatus.CANCELED
            return result

        result.updated, result.unchanged = await asyncio.to_thread(self._split_stale, plan.existing, watermark)
        if result.updated:
            result.update_job = self.job_manager.schedule(
                self.UPDATE_JOB_NAME,
                self._update_units,
                list(result.updated),
                family=UPDATE_FAMILY,
            )

        logger.info(f"Synchronized {self.root}: {result.summary()}")
        return result

    async def update(
        self,
        unit: WorkspaceUnitHandle,
        force: bool = False,
        monitor: Optional[ProgressMonitor] = None,
    ) -> bool:
        """Single-unit update, used when one descriptor changed."""
        return await self.build_support.update(unit, force, monitor)

    # ==================== Internals ====================

    def _check_root(self):
        if not self.root.is_dir() or not os.access(self.root, os.R_OK | os.X_OK):
            raise SyncError(f"Workspace root is not a readable directory: {self.root}")

    def _query_store(self, call):
        try:
            return call()
        except WorkspaceUnavailableError:
            raise
        except Exception as e:
            raise WorkspaceUnavailableError("Workspace store is unavailable", e) from e

    def _split_stale(
        self,
        existing: List[WorkspaceUnitHandle],
        watermark: float,
    ) -> Tuple[List[WorkspaceUnitHandle], List[WorkspaceUnitHandle]]:
        """Open and refresh ``existing``; split by descriptor mtime against the watermark."""
        stale: List[WorkspaceUnitHandle] = []
        fresh: List[WorkspaceUnitHandle] = []
        for unit in existing:
            if not unit.is_open:
                self.store.open(unit)
            self.store.refresh(unit)
            (stale if unit.descriptor_mtime() > watermark else fresh).append(unit)
        return stale, fresh

    async def _update_units(self, monitor: ProgressMonitor, units: List[WorkspaceUnitHandle]) -> JobStatus:
        monitor.begin_task(self.UPDATE_JOB_NAME, len(units))
        for unit in units:
            if monitor.is_canceled:
                logger.info(f"{self.UPDATE_JOB_NAME} canceled with {len(units) - monitor.done} unit(s) left")
                return JobStatus.CANCEL
            try:
                await self.build_support.update(unit, force=False, monitor=monitor, collect_dependents=False)
            except OperationCanceledError:
                return JobStatus.CANCEL
            except SyncError as e:
                logger.error(f"Failed to update configuration of '{unit.name}': {e}")
            monitor.worked(1)
        return JobStatus.OK
