"""
unitsync - Project Graph Collector

Scans a root for build units and flattens the module tree into an ordered,
duplicate-free list.
"""
import asyncio
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from loguru import logger

from src.core.progress import ProgressMonitor
from src.unitsync.discovery.scanner import ModelResolver
from src.unitsync.models import DescriptorRef, ProjectInfo


class ProjectGraphCollector:
    """
    Discovers every unit reachable from a root folder.

    The order is pre-order (a unit before its modules, siblings in declaration
    order). A unit reachable through several declarations appears once; a
    cyclic declaration is cut at the repeated unit.
    """

    def __init__(self, resolver: ModelResolver):
        self.resolver = resolver

    async def discover(self, root_dir: Optional[Path], monitor: Optional[ProgressMonitor] = None) -> List[ProjectInfo]:
        """
        Scan ``root_dir`` and return the flattened unit list.

        The scan runs in a worker thread and is fully materialized before
        returning.

        Raises:
            OperationCanceledError: if the monitor is canceled during the scan
        """
        monitor = monitor or ProgressMonitor()
        if root_dir is None:
            return []
        root = Path(root_dir)
        top_level = await asyncio.to_thread(self.resolver.scan, root.parent, [root], monitor)
        monitor.check_canceled()
        units = self.flatten(top_level)
        logger.info(f"Discovered {len(units)} units under {root}")
        return units

    def flatten(self, projects: Iterable[ProjectInfo]) -> List[ProjectInfo]:
        collected: Dict[DescriptorRef, ProjectInfo] = {}
        stack: List[Tuple[ProjectInfo, FrozenSet[DescriptorRef]]] = [
            (info, frozenset()) for info in reversed(list(projects))
        ]
        while stack:
            info, ancestors = stack.pop()
            if info.descriptor in ancestors:
                logger.warning(f"Module cycle at {info.descriptor}, not descending again")
                continue
            if info.descriptor in collected:
                logger.debug(f"Unit already collected: {info.descriptor}")
                continue
            collected[info.descriptor] = info
            path = ancestors | {info.descriptor}
            stack.extend((child, path) for child in reversed(info.children))
        return list(collected.values())
