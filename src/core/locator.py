from typing import Dict, List, Type, TypeVar
from loguru import logger

from .base_system import BaseSystem
from .config import ConfigManager

T = TypeVar("T", bound=BaseSystem)


class ServiceLocator:
    """
    Holds the configuration and every registered system.

    Systems are instantiated on registration and started in registration
    order by ``start_all``; ``stop_all`` stops them in reverse order.
    """

    def __init__(self):
        self.is_ready = False
        self.config: ConfigManager = None
        self._systems: Dict[Type[BaseSystem], BaseSystem] = {}
        self._order: List[Type[BaseSystem]] = []

    def init(self, config_path: str):
        if self.is_ready: return

        self.config = ConfigManager(config_path)
        self.is_ready = True

    def register_system(self, system_cls: Type[T]) -> T:
        if system_cls in self._systems:
            return self._systems[system_cls]
        instance = system_cls(self, self.config)
        self._systems[system_cls] = instance
        self._order.append(system_cls)
        logger.debug(f"Registered system: {system_cls.__name__}")
        return instance

    def get_system(self, system_cls: Type[T]) -> T:
        try:
            return self._systems[system_cls]
        except KeyError:
            raise KeyError(f"System not registered: {system_cls.__name__}") from None

    async def start_all(self):
        registered = {cls.__name__ for cls in self._order}
        for cls in self._order:
            missing = [dep for dep in getattr(cls, "depends_on", []) if dep not in registered]
            if missing:
                raise RuntimeError(f"{cls.__name__} depends on unregistered systems: {missing}")

        for cls in self._order:
            system = self._systems[cls]
            if not system.is_ready:
                logger.info(f"Starting {cls.__name__}")
                await system.initialize()

    async def stop_all(self):
        for cls in reversed(self._order):
            system = self._systems[cls]
            if system.is_ready:
                try:
                    await system.shutdown()
                except Exception as e:
                    logger.error(f"Error stopping {cls.__name__}: {e}")
        logger.info("All systems stopped")

# Global access
sl = ServiceLocator()
