"""
unitsync - Workspace Store

Mapping from filesystem location to imported unit handles.

The synchronization core only talks to the ``WorkspaceStore`` protocol and
never keeps a handle across runs. ``InMemoryWorkspaceStore`` is the
reference implementation: an in-memory model that persists itself to a JSON
state file, whose modification time serves as the sync watermark.
"""
import json
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set

from loguru import logger

from src.core.errors import SyncError, WorkspaceUnavailableError
from src.unitsync.models import DESCRIPTOR_FILE, canonical_path


@dataclass(eq=False)
class WorkspaceUnitHandle:
    """A unit present in the workspace model. Owned by the store."""
    name: str
    location: Path
    natures: Set[str] = field(default_factory=set)
    is_open: bool = True
    busy: bool = False               # A build is in progress on the unit
    configured_at: Optional[float] = None
    refreshed_at: Optional[float] = None

    @property
    def descriptor_path(self) -> Path:
        return self.location / DESCRIPTOR_FILE

    def has_nature(self, nature: str) -> bool:
        return nature in self.natures

    def descriptor_mtime(self) -> float:
        """Local modification time of the descriptor, 0.0 if it is gone."""
        try:
            return os.stat(self.descriptor_path).st_mtime
        except OSError:
            return 0.0

    def __repr__(self) -> str:
        return f"<WorkspaceUnit {self.name!r} at {self.location.as_posix()}>"


class WorkspaceStore(Protocol):
    def create(self, name: str, location: Path, natures: Iterable[str] = ()) -> WorkspaceUnitHandle: ...

    def delete(self, unit: WorkspaceUnitHandle, force: bool = False) -> None: ...

    def open(self, unit: WorkspaceUnitHandle) -> None: ...

    def refresh(self, unit: WorkspaceUnitHandle) -> None: ...

    def find_by_location(self, location: Path) -> Optional[WorkspaceUnitHandle]: ...

    def list_by_location(self) -> Dict[Path, WorkspaceUnitHandle]: ...

    def last_saved(self) -> float: ...


class InMemoryWorkspaceStore:
    """
    Thread-safe in-memory workspace model.

    Units are keyed by their canonical location and unit names are unique
    across the workspace: creating a second unit under a name already in use
    raises SyncError. Deleting a unit never touches its files on disk.
    """

    def __init__(self, state_file: Optional[Path] = None):
        self.state_file = Path(state_file) if state_file else None
        self._units: Dict[Path, WorkspaceUnitHandle] = {}
        self._lock = threading.RLock()

    # ==================== Unit lifecycle ====================

    def create(self, name: str, location: Path, natures: Iterable[str] = ()) -> WorkspaceUnitHandle:
        key = canonical_path(location)
        with self._lock:
            if key in self._units:
                raise SyncError(f"A unit already exists at {key.as_posix()}")
            if any(unit.name == name for unit in self._units.values()):
                raise SyncError(f"A unit named '{name}' already exists")
            unit = WorkspaceUnitHandle(name=name, location=key, natures=set(natures))
            self._units[key] = unit
        logger.debug(f"Workspace unit created: {name} ({key.as_posix()})")
        return unit

    def delete(self, unit: WorkspaceUnitHandle, force: bool = False) -> None:
        with self._lock:
            if unit.busy and not force:
                raise SyncError(f"Unit '{unit.name}' is busy, use force to delete it")
            removed = self._units.pop(unit.location, None)
        if removed is None:
            logger.warning(f"Delete ignored, unit not in workspace: {unit.name}")
            return
        unit.is_open = False
        logger.debug(f"Workspace unit deleted: {unit.name}")

    def open(self, unit: WorkspaceUnitHandle) -> None:
        unit.is_open = True

    def refresh(self, unit: WorkspaceUnitHandle) -> None:
        unit.refreshed_at = time.time()

    # ==================== Queries ====================

    def find_by_location(self, location: Path) -> Optional[WorkspaceUnitHandle]:
        with self._lock:
            return self._units.get(canonical_path(location))

    def list_by_location(self) -> Dict[Path, WorkspaceUnitHandle]:
        with self._lock:
            return dict(self._units)

    def units(self) -> List[WorkspaceUnitHandle]:
        with self._lock:
            return list(self._units.values())

    # ==================== Persistence ====================

    def last_saved(self) -> float:
        """Modification time of the state file, 0.0 if never saved."""
        if self.state_file is None:
            return 0.0
        try:
            return os.stat(self.state_file).st_mtime
        except OSError:
            return 0.0

    def save(self) -> None:
        if self.state_file is None:
            return
        with self._lock:
            payload = [
                {
                    "name": unit.name,
                    "location": unit.location.as_posix(),
                    "natures": sorted(unit.natures),
                    "configured_at": unit.configured_at,
                }
                for unit in self._units.values()
            ]
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.state_file.with_suffix(self.state_file.suffix + ".tmp")
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp, self.state_file)
        except OSError as e:
            raise WorkspaceUnavailableError(f"Cannot save workspace state to {self.state_file}", e)
        logger.debug(f"Workspace state saved ({len(payload)} units)")

    def load(self) -> int:
        """Restore units from the state file. Returns the number loaded."""
        if self.state_file is None or not self.state_file.is_file():
            return 0
        try:
            payload = json.loads(self.state_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise WorkspaceUnavailableError(f"Cannot read workspace state from {self.state_file}", e)

        with self._lock:
            self._units.clear()
            for entry in payload:
                location = Path(entry["location"])
                self._units[location] = WorkspaceUnitHandle(
                    name=entry["name"],
                    location=location,
                    natures=set(entry.get("natures", [])),
                    configured_at=entry.get("configured_at"),
                )
        logger.info(f"Workspace state loaded: {len(payload)} units")
        return len(payload)
