"""
unitsync - Build Support

Single-unit reconfiguration: decides whether a unit needs its configuration
re-applied and issues the update request to the configuration manager.
"""
import asyncio
from pathlib import Path
from typing import List, Optional

from loguru import logger

from src.core.errors import DescriptorParseError, OperationCanceledError, ReconfigurationError, SyncError
from src.core.progress import ProgressMonitor
from src.unitsync.digest.gate import DigestGate
from src.unitsync.discovery.collector import ProjectGraphCollector
from src.unitsync.importer.engine import ConfigurationManager, UpdateRequest
from src.unitsync.models import BUILD_NATURE, DESCRIPTOR_FILE, canonical_path
from src.unitsync.workspace.store import WorkspaceStore, WorkspaceUnitHandle


class BuildSupport:
    """
    Update entry point for units carrying the build nature.

    In collect-dependents mode a changed descriptor re-reads the unit's
    module graph and updates every module known to the workspace in one
    request. In single-unit mode only the changed unit is updated.
    """

    def __init__(
        self,
        store: WorkspaceStore,
        engine: ConfigurationManager,
        digest_gate: DigestGate,
        collector: ProjectGraphCollector,
        collect_dependents: bool = True,
        offline: bool = False,
    ):
        self.store = store
        self.engine = engine
        self.digest_gate = digest_gate
        self.collector = collector
        self.collect_dependents = collect_dependents
        self.offline = offline

    def applies(self, unit: Optional[WorkspaceUnitHandle]) -> bool:
        return unit is not None and unit.has_nature(BUILD_NATURE)

    def is_build_file(self, path: Path, unit: Optional[WorkspaceUnitHandle] = None) -> bool:
        """True for a descriptor file, sitting directly in ``unit`` when given."""
        path = Path(path)
        if path.name != DESCRIPTOR_FILE:
            return False
        if unit is None:
            return True
        return canonical_path(path.parent) == unit.location

    async def update(
        self,
        unit: WorkspaceUnitHandle,
        force: bool = False,
        monitor: Optional[ProgressMonitor] = None,
        collect_dependents: Optional[bool] = None,
    ) -> bool:
        """
        Re-apply the configuration of ``unit`` if its descriptor changed.

        Args:
            unit: Workspace unit to update
            force: Update even when the descriptor digest is unchanged
            monitor: Cancellation token
            collect_dependents: Override the configured update mode

        Returns:
            True if an update request was issued

        Raises:
            ReconfigurationError: if the configuration manager rejects the update
            OperationCanceledError: if the monitor is canceled
        """
        monitor = monitor or ProgressMonitor()
        if not self.applies(unit):
            return False

        if not await asyncio.to_thread(self.digest_gate.should_sync, unit.descriptor_path, force):
            return False
        monitor.check_canceled()

        bulk = self.collect_dependents if collect_dependents is None else collect_dependents
        units = await asyncio.to_thread(self.collect_units, unit) if bulk else [unit]
        request = UpdateRequest(units=units, offline=self.offline, force_dependency_update=force)
        try:
            await self.engine.update_configuration(request, monitor)
        except (SyncError, OperationCanceledError):
            raise
        except Exception as e:
            raise ReconfigurationError(f"Cannot update configuration of '{unit.name}'", e) from e
        return True

    def collect_units(self, unit: WorkspaceUnitHandle) -> List[WorkspaceUnitHandle]:
        """
        ``unit`` followed by every module of its graph present in the workspace.

        A descriptor that cannot be read falls back to the unit alone.
        """
        try:
            root = self.collector.resolver.read(unit.descriptor_path, recursive=True)
        except DescriptorParseError as e:
            logger.warning(f"Cannot collect modules of '{unit.name}', updating it alone: {e}")
            return [unit]

        units = [unit]
        for info in self.collector.flatten([root]):
            member = self.store.find_by_location(info.directory)
            if member is not None and member not in units:
                units.append(member)
        logger.debug(f"Collected {len(units)} unit(s) for '{unit.name}'")
        return units
