from src.unitsync.sync.orchestrator import UPDATE_FAMILY, SyncOrchestrator, is_build_root
from src.unitsync.sync.watcher import DescriptorEventHandler, DescriptorWatcher

__all__ = [
    "UPDATE_FAMILY",
    "SyncOrchestrator",
    "is_build_root",
    "DescriptorEventHandler",
    "DescriptorWatcher",
]
