from src.unitsync.sources.artifact import ArtifactRef
from src.unitsync.sources.downloader import (
    DOWNLOAD_FAMILY,
    MirrorSourceFetcher,
    SourceDownloadService,
    SourceFetcher,
    is_download_job,
)
from src.unitsync.sources.provider import SourceContentProvider

__all__ = [
    "ArtifactRef",
    "DOWNLOAD_FAMILY",
    "MirrorSourceFetcher",
    "SourceDownloadService",
    "SourceFetcher",
    "is_download_job",
    "SourceContentProvider",
]
