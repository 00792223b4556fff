"""
unitsync Core - Application Infrastructure.

Provides core systems shared by the synchronization services:
- ServiceLocator: Dependency injection and system management
- BaseSystem: Abstract base for all systems
- ConfigManager: Configuration with persistence
- Signal: Synchronous observer notifications
- ProgressMonitor: Progress reporting and cooperative cancellation
- SyncError / OperationCanceledError: Failure and cancellation types

Usage:
    from src.core import ServiceLocator, ConfigManager

    locator = ServiceLocator()
    locator.init("unitsync.json")
    locator.register_system(MyService)
    await locator.start_all()
"""
from .base_system import BaseSystem
from .locator import ServiceLocator, sl
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    ImportSettings,
    StorageSettings,
    WatchSettings,
)
from .events import Signal
from .errors import (
    SyncError,
    DescriptorParseError,
    ImportFailure,
    ReconfigurationError,
    WorkspaceUnavailableError,
    OperationCanceledError,
)
from .progress import ProgressMonitor

__all__ = [
    # Core infrastructure
    "BaseSystem",
    "ServiceLocator",
    "sl",

    # Configuration
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "ImportSettings",
    "StorageSettings",
    "WatchSettings",

    # Events
    "Signal",

    # Errors
    "SyncError",
    "DescriptorParseError",
    "ImportFailure",
    "ReconfigurationError",
    "WorkspaceUnavailableError",
    "OperationCanceledError",

    # Progress
    "ProgressMonitor",
]
