import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from src.core.progress import ProgressMonitor


class JobState(str, Enum):
    PENDING = "pending"
    SLEEPING = "sleeping"    # Scheduled with a delay, waiting for it or for wake_up()
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"


class JobStatus(str, Enum):
    """Value a job handler returns to report how it ended."""
    OK = "ok"
    CANCEL = "cancel"


ACTIVE_STATES = (JobState.PENDING, JobState.SLEEPING, JobState.RUNNING)


@dataclass(eq=False)
class Job:
    """A named background operation owned by the JobManager."""
    name: str
    handler: Callable
    args: Tuple[Any, ...] = field(default_factory=tuple)
    family: Optional[str] = None
    delay: float = 0.0

    state: JobState = JobState.PENDING
    monitor: ProgressMonitor = field(default_factory=ProgressMonitor)
    result: Any = None
    error: Optional[str] = None
    created_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None
    wake_count: int = 0

    _wake: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    def belongs_to(self, family: Optional[str]) -> bool:
        return family is not None and self.family == family

    def wake_up(self):
        """Cut a pending start delay short. No effect once the job runs."""
        self.wake_count += 1
        self._wake.set()

    def cancel(self):
        """Request cooperative cancellation through the job's monitor."""
        self.monitor.cancel()
        self._wake.set()

    def __repr__(self) -> str:
        return f"<Job {self.name!r} family={self.family} state={self.state.value}>"
