"""
unitsync - Source Content Provider

Serves the source text of an artifact entry, fetching the sources archive
on demand and waiting a bounded time for the download to land.
"""
import asyncio
from typing import Optional

from loguru import logger

from src.core.progress import ProgressMonitor
from src.core.tasks import BackgroundTaskWaiter, WaitOutcome
from src.unitsync.models import BUILD_NATURE
from src.unitsync.sources.artifact import ArtifactRef
from src.unitsync.sources.downloader import SourceDownloadService, is_download_job
from src.unitsync.workspace.store import WorkspaceUnitHandle


class SourceContentProvider:
    """
    Returns source text, or None when it is not available in time.

    When the sources archive of a build unit's artifact is missing, a
    download is scheduled and the provider waits up to ``max_wait_ms`` for
    the download jobs to finish. A timeout is not an error: the archive is
    read again and whatever is there is returned.
    """

    MAX_WAIT_MS = 3000

    def __init__(
        self,
        downloader: SourceDownloadService,
        waiter: Optional[BackgroundTaskWaiter] = None,
        max_wait_ms: int = MAX_WAIT_MS,
    ):
        self.downloader = downloader
        self.waiter = waiter or BackgroundTaskWaiter(downloader.job_manager)
        self.max_wait_ms = max_wait_ms

    async def get_source(
        self,
        unit: WorkspaceUnitHandle,
        artifact: ArtifactRef,
        entry: str,
        monitor: Optional[ProgressMonitor] = None,
    ) -> Optional[str]:
        monitor = monitor or ProgressMonitor()
        source = await asyncio.to_thread(artifact.read_source, entry)

        if source is None and self._can_download(unit, artifact):
            self.downloader.schedule(unit, artifact)
            outcome = await self.waiter.await_completion(is_download_job, self.max_wait_ms, monitor)
            if outcome == WaitOutcome.CANCELED:
                return None
            source = await asyncio.to_thread(artifact.read_source, entry)

        if monitor.is_canceled:
            return None
        if source is not None:
            logger.info(f"Source contents request completed: {entry}")
        return source

    def _can_download(self, unit: WorkspaceUnitHandle, artifact: ArtifactRef) -> bool:
        return unit.has_nature(BUILD_NATURE) and artifact.is_archive and not artifact.has_sources
