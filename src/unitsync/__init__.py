"""
unitsync - Build Unit Synchronization

Discovers build descriptors under a workspace root and keeps an in-memory
workspace model in sync with them.

Features:
- Descriptor discovery with module graph flattening
- Glob based exclusions
- Digest based change detection
- Batched import with stale unit replacement
- Background reconfiguration of units changed since the last save
- Bounded waits for source downloads
- Descriptor watching

Note: Uses lazy imports to avoid circular dependencies.
Direct imports: from src.unitsync.models import ProjectInfo
"""

__version__ = "0.1.0"

_lazy_imports = {
    # Models
    "DescriptorRef": "src.unitsync.models",
    "ProjectInfo": "src.unitsync.models",
    "ImportPlan": "src.unitsync.models",
    "ImportResult": "src.unitsync.models",
    "SyncResult": "src.unitsync.models",
    "SyncStatus": "src.unitsync.models",

    # Components
    "PathFilter": "src.unitsync.discovery.path_filter",
    "ProjectGraphCollector": "src.unitsync.discovery.collector",
    "LocalDescriptorScanner": "src.unitsync.discovery.scanner",
    "DigestGate": "src.unitsync.digest.gate",
    "FileDigestStore": "src.unitsync.digest.store",
    "ImportBatcher": "src.unitsync.importer.batcher",
    "BuildSupport": "src.unitsync.importer.build_support",
    "WorkspaceConfigurationManager": "src.unitsync.importer.engine",
    "InMemoryWorkspaceStore": "src.unitsync.workspace.store",
    "SyncOrchestrator": "src.unitsync.sync.orchestrator",
    "DescriptorWatcher": "src.unitsync.sync.watcher",
    "SourceContentProvider": "src.unitsync.sources.provider",

    # Services
    "WorkspaceSyncService": "src.unitsync.service",
    "UnitSyncBundle": "src.unitsync.bundle",
}

__all__ = list(_lazy_imports.keys())


def __getattr__(name):
    if name in _lazy_imports:
        import importlib
        module = importlib.import_module(_lazy_imports[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
