"""
Core - Error Types

Structured failures raised by the synchronization core.

Every failure carries a human readable message and an optional nested
cause. Cancellation is reported through OperationCanceledError, which is
not a SyncError.
"""
from typing import Optional


class SyncError(Exception):
    """Base failure with a message and an optional nested cause."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


class DescriptorParseError(SyncError):
    """A single descriptor file could not be read into a build unit."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        super().__init__(f"Cannot read descriptor {path}", cause)
        self.path = path


class ImportFailure(SyncError):
    """The import engine rejected a unit or a whole batch."""


class ReconfigurationError(SyncError):
    """A unit's configuration update failed."""


class WorkspaceUnavailableError(SyncError):
    """The workspace store could not be queried or modified."""


class OperationCanceledError(Exception):
    """Raised when a ProgressMonitor was canceled while work was in flight."""

    def __init__(self, message: str = "Operation canceled"):
        super().__init__(message)
