"""
unitsync - Domain Models

Discovery results, import plans and synchronization results.

DescriptorRef and ProjectInfo are created fresh on every discovery scan and
dropped after the run; identity across runs is path equality only.
"""
import os
import weakref
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from src.core.errors import SyncError

if TYPE_CHECKING:
    from src.core.tasks.models import Job
    from src.unitsync.workspace.store import WorkspaceUnitHandle


DESCRIPTOR_FILE = "pom.xml"
BUILD_NATURE = "unitsync.buildnature"


def canonical_path(path) -> Path:
    """Absolute, symlink-resolved path used as identity for descriptors."""
    return Path(os.path.realpath(os.path.abspath(os.fspath(path))))


@dataclass(frozen=True)
class DescriptorRef:
    """Absolute path of a build descriptor. Identity is the canonical path."""
    path: Path

    @classmethod
    def of(cls, path) -> "DescriptorRef":
        return cls(canonical_path(path))

    @classmethod
    def in_directory(cls, directory) -> "DescriptorRef":
        return cls.of(Path(directory) / DESCRIPTOR_FILE)

    @property
    def directory(self) -> Path:
        return self.path.parent

    def __str__(self) -> str:
        return self.path.as_posix()


class ProjectInfo:
    """
    A discovered build unit.

    Holds its descriptor, the ordered list of declared child modules and a
    non-owning reference to the parent that declared it. Equality and
    hashing follow the descriptor, so a unit reached twice compares equal.
    """

    def __init__(self, descriptor: DescriptorRef, name: Optional[str] = None, parent: Optional["ProjectInfo"] = None):
        self.descriptor = descriptor
        self.name = name or descriptor.directory.name
        self.children: List[ProjectInfo] = []
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self) -> Optional["ProjectInfo"]:
        return self._parent() if self._parent is not None else None

    @property
    def directory(self) -> Path:
        return self.descriptor.directory

    @property
    def descriptor_path(self) -> Path:
        return self.descriptor.path

    def add_child(self, child: "ProjectInfo") -> "ProjectInfo":
        child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProjectInfo):
            return NotImplemented
        return self.descriptor == other.descriptor

    def __hash__(self) -> int:
        return hash(self.descriptor)

    def __repr__(self) -> str:
        return f"ProjectInfo({self.name!r}, {self.descriptor}, children={len(self.children)})"


@dataclass
class ImportPlan:
    """
    Partition of discovered units against the workspace.

    ``to_import`` keeps discovery order and already contains the units whose
    stale handle is listed in ``reimport``; those handles must be deleted
    before importing.
    """
    to_import: List[ProjectInfo] = field(default_factory=list)
    existing: List["WorkspaceUnitHandle"] = field(default_factory=list)
    reimport: List["WorkspaceUnitHandle"] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_import or self.existing or self.reimport)


@dataclass
class ImportResult:
    """Outcome of importing one unit."""
    info: ProjectInfo
    unit: Optional["WorkspaceUnitHandle"] = None
    error: Optional[SyncError] = None

    @property
    def ok(self) -> bool:
        return self.unit is not None and self.error is None


class SyncStatus(str, Enum):
    OK = "ok"
    CANCELED = "canceled"


@dataclass
class SyncResult:
    """What a synchronization run did, unit by unit."""
    status: SyncStatus = SyncStatus.OK
    imported: List[ImportResult] = field(default_factory=list)
    failed: List[ImportResult] = field(default_factory=list)
    updated: List["WorkspaceUnitHandle"] = field(default_factory=list)
    unchanged: List["WorkspaceUnitHandle"] = field(default_factory=list)
    skipped: List[ProjectInfo] = field(default_factory=list)
    update_job: Optional["Job"] = None

    @property
    def canceled(self) -> bool:
        return self.status == SyncStatus.CANCELED

    def summary(self) -> str:
        return (
            f"{self.status.value}: +{len(self.imported)} imported, "
            f"~{len(self.updated)} to update, ={len(self.unchanged)} unchanged, "
            f"!{len(self.failed)} failed, -{len(self.skipped)} skipped"
        )
