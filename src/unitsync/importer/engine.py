"""
unitsync - Configuration Manager

The build engine side of importing: turns discovered units into workspace
units and re-applies their configuration.
"""
import time
from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from loguru import logger

from src.core.errors import ImportFailure, ReconfigurationError, SyncError
from src.core.progress import ProgressMonitor
from src.unitsync.models import BUILD_NATURE, ImportResult, ProjectInfo, canonical_path
from src.unitsync.workspace.store import WorkspaceStore, WorkspaceUnitHandle


@dataclass
class UpdateRequest:
    """One configuration update covering one or more units."""
    units: List[WorkspaceUnitHandle] = field(default_factory=list)
    offline: bool = False
    force_dependency_update: bool = True


class ConfigurationManager(Protocol):
    async def import_units(self, infos: Sequence[ProjectInfo], monitor: ProgressMonitor) -> List[ImportResult]: ...

    async def update_configuration(self, request: UpdateRequest, monitor: ProgressMonitor) -> None: ...


class WorkspaceConfigurationManager:
    """
    Reference configuration manager working directly on a WorkspaceStore.

    Imported units are created with the build nature. Each unit's import
    succeeds or fails on its own; failures are returned, not raised. An
    import stops early (returning what it did) when the monitor is canceled.
    """

    def __init__(self, store: WorkspaceStore):
        self.store = store
        self.update_count = 0

    async def import_units(self, infos: Sequence[ProjectInfo], monitor: ProgressMonitor) -> List[ImportResult]:
        results: List[ImportResult] = []
        for info in infos:
            if monitor.is_canceled:
                logger.info(f"Import canceled after {len(results)} of {len(infos)} units")
                break
            try:
                unit = self.store.create(self._unit_name(info), info.directory, {BUILD_NATURE})
                results.append(ImportResult(info, unit=unit))
                logger.debug(f"Imported unit {unit.name}")
            except SyncError as e:
                logger.error(f"Failed to import {info.name}: {e}")
                results.append(ImportResult(info, error=ImportFailure(f"Cannot import {info.name}", e)))
            monitor.worked(1)
        return results

    def _unit_name(self, info: ProjectInfo) -> str:
        """``info.name``, prefixed with its parent folder when a unit elsewhere already has it."""
        location = canonical_path(info.directory)
        taken = {unit.name for key, unit in self.store.list_by_location().items() if key != location}
        if info.name not in taken:
            return info.name
        return f"{location.parent.name}-{info.name}"

    async def update_configuration(self, request: UpdateRequest, monitor: ProgressMonitor) -> None:
        names = ", ".join(unit.name for unit in request.units)
        logger.info(f"Updating configuration of {len(request.units)} unit(s): {names} [offline={request.offline}]")
        for unit in request.units:
            if not unit.is_open:
                raise ReconfigurationError(f"Unit '{unit.name}' is closed")
            if self.store.find_by_location(unit.location) is not unit:
                raise ReconfigurationError(f"Unit '{unit.name}' is no longer in the workspace")
            unit.configured_at = time.time()
        self.update_count += 1
