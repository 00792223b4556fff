"""
unitsync - Digest Store

Persisted map from absolute file path to the SHA-256 of its last seen
content.
"""
import hashlib
import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from loguru import logger

from src.unitsync.models import canonical_path


class DigestStore(Protocol):
    def update_digest(self, path: Path) -> bool: ...


class FileDigestStore:
    """
    JSON file backed digest store.

    ``update_digest`` is atomic per store: hashing happens outside the lock,
    the compare-and-replace plus the write to disk happen under it.
    """

    def __init__(self, state_file: Optional[Path] = None):
        self.state_file = Path(state_file) if state_file else None
        self._digests: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._load()

    def update_digest(self, path: Path) -> bool:
        """
        Refresh the stored digest of ``path``.

        Returns:
            True if the content differs from the stored digest, or no digest
            was stored. For a file that no longer exists, the stored digest
            is dropped and True is returned only if one existed.
        """
        key = canonical_path(path).as_posix()
        digest = self._compute(Path(key))

        with self._lock:
            previous = self._digests.get(key)
            if digest is None:
                if previous is None:
                    return False
                del self._digests[key]
            elif previous == digest:
                return False
            else:
                self._digests[key] = digest
            self._save()
        return True

    def get(self, path: Path) -> Optional[str]:
        with self._lock:
            return self._digests.get(canonical_path(path).as_posix())

    def __len__(self) -> int:
        with self._lock:
            return len(self._digests)

    def _compute(self, path: Path) -> Optional[str]:
        """SHA-256 of file content, None if it cannot be read."""
        sha = hashlib.sha256()
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(65536), b""):
                    sha.update(chunk)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cannot hash {path}: {e}")
            return None
        return sha.hexdigest()

    def _load(self):
        if self.state_file is None or not self.state_file.is_file():
            return
        try:
            raw = json.loads(self.state_file.read_text(encoding="utf-8"))
            self._digests = {str(k): str(v) for k, v in raw.items()}
            logger.debug(f"Loaded {len(self._digests)} digests from {self.state_file}")
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Failed to load digests from {self.state_file}: {e}")
            self._digests = {}

    def _save(self):
        # Called with the lock held
        if self.state_file is None:
            return
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.state_file.with_suffix(self.state_file.suffix + ".tmp")
            tmp.write_text(json.dumps(self._digests, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, self.state_file)
        except OSError as e:
            logger.error(f"Failed to save digests to {self.state_file}: {e}")
