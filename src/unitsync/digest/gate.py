"""
unitsync - Digest Gate

Answers "has this descriptor changed since it was last processed".
"""
from pathlib import Path

from loguru import logger

from src.unitsync.digest.store import DigestStore


class DigestGate:
    """
    One-shot change signal per descriptor.

    Each call refreshes the stored digest, so a second call on unchanged
    content returns False. ``force`` always answers True, and the digest is
    still refreshed.
    """

    def __init__(self, store: DigestStore):
        self.store = store

    def refresh(self, path: Path) -> bool:
        """Record the current content of ``path`` as processed."""
        return self.store.update_digest(path)

    def should_sync(self, path: Path, force: bool = False) -> bool:
        changed = self.store.update_digest(path)
        if not changed and not force:
            logger.debug(f"Descriptor unchanged: {path}")
        return changed or force
