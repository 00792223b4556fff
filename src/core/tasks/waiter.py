"""
Core - Background Task Waiter

Bounded poll-and-wake loop for a background job this process does not own
the completion of (e.g. an artifact download).
"""
import asyncio
import time
from enum import Enum
from typing import Optional

from loguru import logger

from src.core.progress import ProgressMonitor
from src.core.tasks.system import JobManager, JobPredicate


class WaitOutcome(str, Enum):
    COMPLETED = "completed"   # No matching job left
    TIMED_OUT = "timed_out"   # Deadline passed while a matching job was still active
    CANCELED = "canceled"     # Caller's monitor was canceled


class BackgroundTaskWaiter:
    """
    Waits for matching jobs to go away, waking them while they sleep.

    Every poll interval the waiter looks for an active job matching the
    predicate. If there is none, waiting is over. Otherwise the job is woken
    (it may be idling through a start delay) and the waiter sleeps one more
    interval, until the deadline passes. A timeout is logged, never raised:
    callers continue with whatever state is available.
    """

    POLL_INTERVAL = 0.1

    def __init__(self, job_manager: JobManager, poll_interval: float = POLL_INTERVAL):
        self.job_manager = job_manager
        self.poll_interval = poll_interval

    async def await_completion(
        self,
        predicate: JobPredicate,
        timeout_ms: int,
        monitor: Optional[ProgressMonitor] = None,
    ) -> WaitOutcome:
        deadline = time.monotonic() + timeout_ms / 1000.0
        while True:
            if monitor is not None and monitor.is_canceled:
                return WaitOutcome.CANCELED

            jobs = self.job_manager.find(predicate)
            if not jobs:
                return WaitOutcome.COMPLETED

            job = jobs[0]
            if time.monotonic() > deadline:
                logger.info(f"Timeout while waiting for completion of job: {job.name}")
                return WaitOutcome.TIMED_OUT

            job.wake_up()
            await asyncio.sleep(self.poll_interval)
