"""
unitsync - Descriptor Scanner

Locates build descriptors under a folder and reads their module
declarations into a ProjectInfo tree.

Only module membership is read from a descriptor; everything else in it is
the business of the build engine.
"""
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from src.core.errors import DescriptorParseError
from src.core.progress import ProgressMonitor
from src.unitsync.models import DESCRIPTOR_FILE, DescriptorRef, ProjectInfo


class ModelResolver(Protocol):
    """Turns descriptor files into a build-unit graph."""

    def scan(self, base_dir: Path, folders: Sequence[Path], monitor: ProgressMonitor) -> List[ProjectInfo]: ...

    def read(self, descriptor: Path, recursive: bool = True) -> ProjectInfo: ...


@dataclass
class DescriptorModel:
    """The parts of a descriptor the scanner cares about."""
    path: Path
    artifact_id: Optional[str] = None
    modules: List[str] = field(default_factory=list)


def parse_descriptor(path: Path) -> DescriptorModel:
    """
    Read artifactId and module declarations (including profile modules).

    Raises:
        DescriptorParseError: if the file cannot be read or is not a project
    """
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        raise DescriptorParseError(path, e) from e

    if root.tag.rsplit("}", 1)[-1] != "project":
        raise DescriptorParseError(path, ValueError(f"unexpected root element <{root.tag}>"))

    modules: List[str] = []
    declared = root.findall("{*}modules/{*}module") + root.findall("{*}profiles/{*}profile/{*}modules/{*}module")
    for element in declared:
        name = (element.text or "").strip()
        if name and name not in modules:
            modules.append(name)

    artifact = root.find("{*}artifactId")
    artifact_id = artifact.text.strip() if artifact is not None and artifact.text else None
    return DescriptorModel(path=path, artifact_id=artifact_id, modules=modules)


def _declared_above(info: Optional[ProjectInfo], ref: DescriptorRef) -> bool:
    while info is not None:
        if info.descriptor == ref:
            return True
        info = info.parent
    return False


class LocalDescriptorScanner:
    """
    Walks folders looking for descriptors.

    A folder holding a descriptor is a unit: its subfolders are only reached
    through the modules it declares. Other folders are searched recursively.
    Descriptors that fail to parse are logged, recorded in ``errors`` and
    left out of the graph.
    """

    METADATA_DIR = ".metadata"

    def __init__(self, descriptor_name: str = DESCRIPTOR_FILE):
        self.descriptor_name = descriptor_name
        self.errors: List[DescriptorParseError] = []

    def scan(self, base_dir: Path, folders: Sequence[Path], monitor: ProgressMonitor) -> List[ProjectInfo]:
        """
        Scan ``folders`` (relative ones are resolved against ``base_dir``).

        Raises:
            OperationCanceledError: if the monitor is canceled mid-scan
        """
        self.errors = []
        projects: List[ProjectInfo] = []
        for folder in folders:
            folder = Path(folder)
            if not folder.is_absolute():
                folder = Path(base_dir) / folder
            logger.debug(f"Scanning for descriptors: {folder}")
            self._scan_folder(folder, projects, monitor)
        return projects

    def read(self, descriptor: Path, recursive: bool = True) -> ProjectInfo:
        """
        Read one descriptor, and its modules when ``recursive``.

        Raises:
            DescriptorParseError: if the descriptor itself cannot be read
        """
        ref = DescriptorRef.of(descriptor)
        model = parse_descriptor(ref.path)
        info = ProjectInfo(ref, name=model.artifact_id)
        if recursive:
            self._read_modules(info, model)
        return info

    def _scan_folder(self, folder: Path, projects: List[ProjectInfo], monitor: ProgressMonitor):
        pending: List[Path] = [folder]
        while pending:
            monitor.check_canceled()
            directory = pending.pop()

            descriptor = directory / self.descriptor_name
            if descriptor.is_file():
                info = self._read_unit(descriptor)
                if info is not None:
                    projects.append(info)
                continue

            try:
                with os.scandir(directory) as entries:
                    subdirs = sorted(
                        entry.path for entry in entries
                        if entry.is_dir(follow_symlinks=False) and entry.name != self.METADATA_DIR
                    )
            except OSError as e:
                logger.warning(f"Cannot scan directory {directory}: {e}")
                continue

            # Popped in sorted order
            pending.extend(Path(subdir) for subdir in reversed(subdirs))

    def _parse(self, ref: DescriptorRef) -> Optional[DescriptorModel]:
        try:
            return parse_descriptor(ref.path)
        except DescriptorParseError as e:
            logger.error(f"{e.message}: {e.cause}")
            self.errors.append(e)
            return None

    def _read_unit(self, descriptor: Path) -> Optional[ProjectInfo]:
        ref = DescriptorRef.of(descriptor)
        model = self._parse(ref)
        if model is None:
            return None
        info = ProjectInfo(ref, name=model.artifact_id)
        self._read_modules(info, model)
        return info

    def _module_descriptor(self, info: ProjectInfo, module: str) -> Optional[Path]:
        target = info.directory / module
        descriptor = target if target.is_file() else target / self.descriptor_name
        if not descriptor.is_file():
            logger.warning(f"Module '{module}' declared by {info.descriptor} has no descriptor")
            return None
        return descriptor

    def _read_modules(self, root: ProjectInfo, model: DescriptorModel):
        """
        Attach the module tree declared below ``root``.

        Works off an explicit stack. A module that re-declares one of its
        ancestors is skipped.
        """
        stack: List[Tuple[ProjectInfo, DescriptorModel]] = [(root, model)]
        while stack:
            info, model = stack.pop()
            children = []
            for module in model.modules:
                descriptor = self._module_descriptor(info, module)
                if descriptor is None:
                    continue
                ref = DescriptorRef.of(descriptor)
                if _declared_above(info, ref):
                    logger.warning(f"Module cycle detected, skipping re-declared unit: {ref}")
                    continue
                child_model = self._parse(ref)
                if child_model is None:
                    continue
                child = info.add_child(ProjectInfo(ref, name=child_model.artifact_id))
                children.append((child, child_model))
            stack.extend(reversed(children))
