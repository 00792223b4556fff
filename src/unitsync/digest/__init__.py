from src.unitsync.digest.store import DigestStore, FileDigestStore
from src.unitsync.digest.gate import DigestGate

__all__ = ["DigestStore", "FileDigestStore", "DigestGate"]
