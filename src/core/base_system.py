from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .locator import ServiceLocator
    from .config import ConfigManager


class BaseSystem(ABC):
    """
    Base class for long-lived systems (JobManager, WorkspaceSyncService).

    A system receives the ServiceLocator and the ConfigManager at
    construction and does its real setup in ``initialize``. Dependencies are
    declared by class name in ``depends_on``; the locator refuses to start a
    system whose dependencies are not registered.
    """

    depends_on: List[str] = []

    def __init__(self, locator: 'ServiceLocator', config: 'ConfigManager'):
        self.locator = locator
        self.config = config
        self._is_ready = False

    @abstractmethod
    async def initialize(self):
        """Open stores, start workers. Subclasses call super() last."""
        self._is_ready = True

    @abstractmethod
    async def shutdown(self):
        """Stop workers, flush state. Subclasses call super() last."""
        self._is_ready = False

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    async def __aenter__(self):
        if not self._is_ready:
            await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._is_ready:
            await self.shutdown()
