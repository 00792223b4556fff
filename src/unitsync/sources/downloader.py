"""
unitsync - Source Downloads

Fire-and-forget background jobs that make "-sources" archives available
next to the artifacts of a unit.
"""
import shutil
from pathlib import Path
from typing import List, Optional, Protocol

from loguru import logger

from src.core.progress import ProgressMonitor
from src.core.tasks import Job, JobManager
from src.unitsync.sources.artifact import ARCHIVE_SUFFIXES, SOURCES_CLASSIFIER, ArtifactRef
from src.unitsync.workspace.store import WorkspaceUnitHandle

DOWNLOAD_FAMILY = "unitsync.download-sources"
DOWNLOAD_DELAY = 1.0    # Seconds a download job sleeps before starting, unless woken


class SourceFetcher(Protocol):
    def fetch(self, unit: WorkspaceUnitHandle, artifact: Optional[ArtifactRef], monitor: ProgressMonitor) -> List[Path]: ...


class MirrorSourceFetcher:
    """
    Copies "-sources" archives from a local mirror directory.

    Without an explicit artifact, every archive in the unit's ``lib`` folder
    is considered.
    """

    LIB_DIR = "lib"

    def __init__(self, mirror_dir: Optional[Path]):
        self.mirror_dir = Path(mirror_dir) if mirror_dir else None

    def fetch(self, unit: WorkspaceUnitHandle, artifact: Optional[ArtifactRef], monitor: ProgressMonitor) -> List[Path]:
        if self.mirror_dir is None:
            logger.debug(f"No sources mirror configured, nothing to fetch for {unit.name}")
            return []

        fetched: List[Path] = []
        for candidate in ([artifact] if artifact else self._unit_artifacts(unit)):
            if monitor.is_canceled:
                break
            if not candidate.is_archive or candidate.has_sources:
                continue
            source = self.mirror_dir / candidate.sources_path.name
            if not source.is_file():
                logger.debug(f"Sources not in mirror: {source.name}")
                continue
            shutil.copyfile(source, candidate.sources_path)
            fetched.append(candidate.sources_path)
            logger.info(f"Fetched sources {source.name} for {unit.name}")
        return fetched

    def _unit_artifacts(self, unit: WorkspaceUnitHandle) -> List[ArtifactRef]:
        lib = unit.location / self.LIB_DIR
        if not lib.is_dir():
            return []
        return [
            ArtifactRef(path) for path in sorted(lib.iterdir())
            if path.suffix.lower() in ARCHIVE_SUFFIXES and not path.stem.endswith(SOURCES_CLASSIFIER)
        ]


def is_download_job(job: Job) -> bool:
    return job.belongs_to(DOWNLOAD_FAMILY)


class SourceDownloadService:
    """Schedules source downloads on the JobManager."""

    def __init__(self, job_manager: JobManager, fetcher: SourceFetcher, delay: float = DOWNLOAD_DELAY):
        self.job_manager = job_manager
        self.fetcher = fetcher
        self.delay = delay

    def schedule(self, unit: WorkspaceUnitHandle, artifact: Optional[ArtifactRef] = None) -> Job:
        """Schedule a download and return at once. Failures end up in the job log."""
        target = artifact.path.name if artifact else unit.name
        return self.job_manager.schedule(
            f"Download sources: {target}",
            self._download,
            unit,
            artifact,
            family=DOWNLOAD_FAMILY,
            delay=self.delay,
        )

    def _download(self, monitor: ProgressMonitor, unit: WorkspaceUnitHandle, artifact: Optional[ArtifactRef]) -> List[Path]:
        return self.fetcher.fetch(unit, artifact, monitor)
