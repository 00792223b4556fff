"""
unitsync - Workspace Sync Service

System that wires stores, importer and orchestrator together from the
application configuration, and keeps the workspace in sync when watching.
"""
import asyncio
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from src.core.base_system import BaseSystem
from src.core.errors import SyncError, WorkspaceUnavailableError
from src.core.progress import ProgressMonitor
from src.core.tasks import JobManager
from src.unitsync.digest import DigestGate, FileDigestStore
from src.unitsync.discovery import LocalDescriptorScanner, ProjectGraphCollector
from src.unitsync.importer import BuildSupport, ImportBatcher, WorkspaceConfigurationManager
from src.unitsync.models import SyncResult
from src.unitsync.sources import MirrorSourceFetcher, SourceContentProvider, SourceDownloadService
from src.unitsync.sync import DescriptorWatcher, SyncOrchestrator
from src.unitsync.workspace import InMemoryWorkspaceStore


class WorkspaceSyncService(BaseSystem):
    """
    Synchronization service for one workspace root.

    Features:
    - Workspace and digest state persisted under the configured state dir
    - Full synchronization on demand
    - Descriptor watching with single-unit updates for known units
    - Import settings applied live when the configuration changes
    """

    depends_on = ["JobManager"]

    async def initialize(self) -> None:
        logger.info("WorkspaceSyncService initializing")
        settings = self.config.data
        state_dir = Path(settings.storage.state_dir)

        self.job_manager = self.locator.get_system(JobManager)
        self.store = InMemoryWorkspaceStore(state_dir / settings.storage.workspace_state_file)
        try:
            await asyncio.to_thread(self.store.load)
        except WorkspaceUnavailableError as e:
            logger.error(f"Starting with an empty workspace: {e}")

        self.digests = FileDigestStore(state_dir / settings.storage.digest_file)
        self.digest_gate = DigestGate(self.digests)
        self.collector = ProjectGraphCollector(LocalDescriptorScanner())
        self.engine = WorkspaceConfigurationManager(self.store)

        importer = settings.importer
        mirror = Path(importer.sources_mirror) if importer.sources_mirror else None
        self.downloader = SourceDownloadService(self.job_manager, MirrorSourceFetcher(mirror))
        self.sources = SourceContentProvider(self.downloader)
        self.batcher = ImportBatcher(
            self.store,
            self.engine,
            self.digest_gate,
            downloader=self.downloader,
            download_sources=importer.download_sources,
        )
        self.build_support = BuildSupport(
            self.store,
            self.engine,
            self.digest_gate,
            self.collector,
            collect_dependents=importer.collect_dependents,
            offline=importer.offline,
        )

        self.orchestrator: Optional[SyncOrchestrator] = None
        self.watcher: Optional[DescriptorWatcher] = None
        self._change_lock = asyncio.Lock()
        self.config.on_changed.connect(self._on_config_changed)

        if settings.general.workspace_root:
            self.open_root(Path(settings.general.workspace_root))
            if settings.watch.enabled:
                self.start_watching()

        await super().initialize()
        logger.info(f"WorkspaceSyncService ready ({len(self.store.units())} units in workspace)")

    async def shutdown(self) -> None:
        logger.info("WorkspaceSyncService shutting down")
        self.config.on_changed.disconnect(self._on_config_changed)
        if self.watcher is not None:
            self.watcher.stop()
        try:
            await asyncio.to_thread(self.store.save)
        except WorkspaceUnavailableError as e:
            logger.error(f"Workspace state not saved: {e}")
        await super().shutdown()

    # ==================== Root ====================

    def open_root(self, root: Path) -> SyncOrchestrator:
        """Bind the service to a workspace root, replacing any previous one."""
        if self.watcher is not None and self.orchestrator is not None:
            self.watcher.remove_watch(self.orchestrator.root)
        importer = self.config.data.importer
        self.orchestrator = SyncOrchestrator(
            root=Path(root).resolve(),
            store=self.store,
            collector=self.collector,
            batcher=self.batcher,
            build_support=self.build_support,
            job_manager=self.job_manager,
            exclusions=importer.exclusions,
            enabled=importer.enabled,
        )
        logger.info(f"Workspace root: {self.orchestrator.root}")
        return self.orchestrator

    def _require_root(self) -> SyncOrchestrator:
        if self.orchestrator is None:
            raise SyncError("No workspace root opened")
        return self.orchestrator

    # ==================== Synchronization ====================

    async def synchronize(self, monitor: Optional[ProgressMonitor] = None, wait: bool = True) -> SyncResult:
        """
        Rescan the root, run a full synchronization and save the workspace.

        Args:
            monitor: Cancellation token
            wait: Wait for the background reconfiguration job before saving
        """
        orchestrator = self._require_root()
        orchestrator.reset()
        result = await orchestrator.synchronize(monitor)
        if wait and result.update_job is not None:
            job = result.update_job
            await self.job_manager.join(lambda candidate: candidate is job)
        await asyncio.to_thread(self.store.save)
        return result

    async def on_descriptor_changed(self, path: Path) -> None:
        """
        Update a known unit, or rescan when the descriptor is new.

        A known unit whose declared modules changed is updated and then
        followed by a rescan, so added modules get imported.
        """
        orchestrator = self._require_root()
        async with self._change_lock:
            try:
                unit = self.store.find_by_location(path.parent)
                if unit is not None and self.build_support.is_build_file(path, unit):
                    if await orchestrator.update(unit):
                        logger.info(f"Configuration updated: {unit.name}")
                        await asyncio.to_thread(self.store.save)
                    if await asyncio.to_thread(orchestrator.modules_changed, path):
                        logger.info(f"Modules of '{unit.name}' changed, rescanning workspace")
                        await self.synchronize()
                else:
                    logger.info(f"New descriptor {path}, rescanning workspace")
                    await self.synchronize()
            except SyncError as e:
                logger.error(f"Failed to handle change of {path}: {e}")

    # ==================== Watching ====================

    def start_watching(self) -> DescriptorWatcher:
        orchestrator = self._require_root()
        if self.watcher is None:
            self.watcher = DescriptorWatcher(self.on_descriptor_changed)
        self.watcher.add_watch(orchestrator.root)
        self.watcher.start()
        return self.watcher

    # ==================== Configuration ====================

    def _on_config_changed(self, section: str, key: str, value: Any):
        if section != "importer":
            return
        if key == "exclusions" and self.orchestrator is not None:
            self.orchestrator.set_exclusions(value)
        elif key == "enabled" and self.orchestrator is not None:
            self.orchestrator.enabled = value
        elif key == "download_sources":
            self.batcher.download_sources = value
        elif key == "collect_dependents":
            self.build_support.collect_dependents = value
        elif key == "offline":
            self.build_support.offline = value
        else:
            return
        logger.debug(f"Applied importer setting {key}={value!r}")
