"""
Bootstrap helpers for headless unitsync applications.

Builds the locator, registers systems and runs a coroutine against them.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional, Type, TypeVar

from loguru import logger

from .locator import ServiceLocator
from .base_system import BaseSystem
from .tasks.system import JobManager

T = TypeVar("T")


class SystemBundle:
    """Group of systems registered together, in dependency order."""

    def register(self, builder: "ApplicationBuilder") -> None:
        raise NotImplementedError


class ApplicationBuilder:
    """
    Fluent builder for unitsync applications.

    Example:
        locator = await (ApplicationBuilder("unitsync", "unitsync.json")
                         .with_default_systems()
                         .add_bundle(UnitSyncBundle())
                         .build())
    """

    def __init__(self, name: str = "unitsync", config_path: str = "unitsync.json"):
        """
        Args:
            name: Application name, used in log lines
            config_path: JSON or TOML config file (JSON is created if missing)
        """
        self.name = name
        self.config_path = config_path
        self._systems: List[Type[BaseSystem]] = []
        self._use_default_systems = True
        self._logging_configured = False

    def with_default_systems(self, enable: bool = True):
        """Register the JobManager ahead of custom systems."""
        self._use_default_systems = enable
        return self

    def add_system(self, system_cls: Type[BaseSystem]):
        self._systems.append(system_cls)
        return self

    def add_bundle(self, bundle: SystemBundle):
        bundle.register(self)
        return self

    def with_logging(self, enable: bool = True):
        """Install loguru sinks from the ``general`` config section on build."""
        self._logging_configured = enable
        return self

    async def build(self, locator: Optional[ServiceLocator] = None) -> ServiceLocator:
        """
        Load config, set up logging, register and start every system.

        Returns:
            The started ServiceLocator (a fresh one unless given)
        """
        locator = locator or ServiceLocator()

        # Logging settings live in the config, so config comes first
        locator.init(self.config_path)

        if self._logging_configured:
            from .logging import setup_logging
            general = locator.config.data.general
            setup_logging(general.debug_mode, general.log_dir)
            logger.info(f"Starting {self.name}")

        if self._use_default_systems:
            locator.register_system(JobManager)
        for sys_cls in self._systems:
            locator.register_system(sys_cls)

        await locator.start_all()
        return locator


def run_app(builder: ApplicationBuilder, main: Callable[[ServiceLocator], Awaitable[T]]) -> Optional[T]:
    """
    Build the application, run ``main`` with its locator and stop every system.

    Returns:
        What ``main`` returned, or None when interrupted from the keyboard
    """

    async def async_main():
        locator = await builder.build()
        try:
            return await main(locator)
        finally:
            await locator.stop_all()

    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info(f"{builder.name} interrupted by user")
        return None
