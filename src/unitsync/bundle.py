"""
unitsync System Bundle.

Registers the synchronization services with ApplicationBuilder.
"""
from typing import TYPE_CHECKING

from src.core.bootstrap import SystemBundle

if TYPE_CHECKING:
    from src.core.bootstrap import ApplicationBuilder


class UnitSyncBundle(SystemBundle):
    """
    Bundle containing the workspace synchronization service.

    Example:
        builder = (ApplicationBuilder("unitsync", "unitsync.json")
                   .with_default_systems()
                   .add_bundle(UnitSyncBundle()))
    """

    def register(self, builder: "ApplicationBuilder") -> None:
        from src.unitsync.service import WorkspaceSyncService

        builder.add_system(WorkspaceSyncService)
