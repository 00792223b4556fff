"""
unitsync - Artifact References

A binary artifact on disk and its companion "-sources" archive.
"""
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

ARCHIVE_SUFFIXES = (".jar", ".zip")
SOURCES_CLASSIFIER = "-sources"


@dataclass(frozen=True)
class ArtifactRef:
    path: Path

    @property
    def is_archive(self) -> bool:
        return self.path.suffix.lower() in ARCHIVE_SUFFIXES

    @property
    def sources_path(self) -> Path:
        """``name-sources.jar`` next to ``name.jar``."""
        return self.path.with_name(f"{self.path.stem}{SOURCES_CLASSIFIER}{self.path.suffix}")

    @property
    def has_sources(self) -> bool:
        return self.sources_path.is_file()

    def read_source(self, entry: str) -> Optional[str]:
        """
        Text of ``entry`` inside the sources archive.

        Returns None when the archive or the entry is missing, or unreadable.
        """
        if not self.has_sources:
            return None
        try:
            with zipfile.ZipFile(self.sources_path) as archive:
                with archive.open(entry) as f:
                    return f.read().decode("utf-8", errors="replace")
        except KeyError:
            logger.debug(f"No entry {entry} in {self.sources_path}")
            return None
        except (OSError, zipfile.BadZipFile) as e:
            logger.warning(f"Cannot read sources archive {self.sources_path}: {e}")
            return None
