"""
unitsync - Build Unit Workspace Synchronization

Discovers build descriptors under a workspace root, imports the units they
describe into a workspace model and keeps that model in sync with the
filesystem without re-resolving unchanged units.
"""

# Core systems
from src.core.base_system import BaseSystem
from src.core.locator import ServiceLocator, sl
from src.core.config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    ImportSettings,
    StorageSettings,
    WatchSettings,
)
from src.core.events import Signal
from src.core.logging import setup_logging
from src.core.bootstrap import ApplicationBuilder, SystemBundle, run_app

# Systems
from src.core.tasks.system import JobManager

__version__ = "0.1.0"

__all__ = [
    # Core
    "BaseSystem",
    "ServiceLocator",
    "sl",
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "ImportSettings",
    "StorageSettings",
    "WatchSettings",
    "Signal",
    "setup_logging",
    "ApplicationBuilder",
    "SystemBundle",
    "run_app",

    # Systems
    "JobManager",
]
