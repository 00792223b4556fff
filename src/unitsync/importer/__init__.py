from src.unitsync.importer.engine import ConfigurationManager, UpdateRequest, WorkspaceConfigurationManager
from src.unitsync.importer.batcher import MAX_IMPORT_BATCH, ImportBatcher, partition
from src.unitsync.importer.build_support import BuildSupport

__all__ = [
    "ConfigurationManager",
    "UpdateRequest",
    "WorkspaceConfigurationManager",
    "MAX_IMPORT_BATCH",
    "ImportBatcher",
    "partition",
    "BuildSupport",
]
