"""
Core - Progress Monitor

Cooperative cancellation token with progress reporting.

Long running operations poll ``is_canceled`` (or call ``check_canceled``)
between work units. Child monitors created with ``split`` share the
cancellation flag of their parent, so canceling any of them cancels the
whole operation.
"""
import threading
from typing import Optional

from src.core.errors import OperationCanceledError
from src.core.events import Signal


class _CancelFlag:
    """Thread-safe flag shared by a monitor and all of its children."""

    def __init__(self):
        self._event = threading.Event()

    def set(self):
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


class ProgressMonitor:
    """
    Progress and cancellation token passed through every long operation.

    Signals:
        on_progress: Emitted with (task_name, done, total) on every change
    """

    def __init__(self, task_name: str = "", total: int = 0, _flag: Optional[_CancelFlag] = None):
        self.task_name = task_name
        self.total = total
        self.done = 0
        self._flag = _flag or _CancelFlag()
        self.on_progress = Signal("ProgressChanged")

    # ==================== Cancellation ====================

    def cancel(self):
        """Request cancellation. Work already in flight may still finish."""
        self._flag.set()

    @property
    def is_canceled(self) -> bool:
        return self._flag.is_set()

    def check_canceled(self):
        """Raise OperationCanceledError if cancellation was requested."""
        if self._flag.is_set():
            raise OperationCanceledError(f"{self.task_name or 'Operation'} canceled")

    # ==================== Progress ====================

    def begin_task(self, name: str, total: int = 0):
        self.task_name = name
        self.total = total
        self.done = 0
        self.on_progress.emit(self.task_name, self.done, self.total)

    def set_task_name(self, name: str):
        self.task_name = name
        self.on_progress.emit(self.task_name, self.done, self.total)

    def worked(self, amount: int = 1):
        self.done += amount
        if self.total:
            self.done = min(self.done, self.total)
        self.on_progress.emit(self.task_name, self.done, self.total)

    def split(self, amount: int, task_name: str = "") -> "ProgressMonitor":
        """
        Create a child monitor that accounts for ``amount`` units of this one.

        The child shares the cancellation flag. The parent is credited with
        ``amount`` immediately, matching how child work is reported as a block.
        """
        child = ProgressMonitor(task_name or self.task_name, 0, _flag=self._flag)
        self.worked(amount)
        return child

    def __repr__(self) -> str:
        state = "canceled" if self.is_canceled else "active"
        return f"<ProgressMonitor {self.task_name!r} {self.done}/{self.total} {state}>"
