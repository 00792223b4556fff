"""
Core tasks module - background job execution.
"""
from src.core.tasks.models import Job, JobState, JobStatus
from src.core.tasks.system import JobManager, in_family
from src.core.tasks.waiter import BackgroundTaskWaiter, WaitOutcome

__all__ = [
    "Job",
    "JobState",
    "JobStatus",
    "JobManager",
    "in_family",
    "BackgroundTaskWaiter",
    "WaitOutcome",
]
