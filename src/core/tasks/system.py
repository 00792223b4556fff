import asyncio
import inspect
import time
from functools import partial
from typing import Callable, List, Optional
from loguru import logger
from ..base_system import BaseSystem
from .models import Job, JobState, JobStatus

JobPredicate = Callable[[Job], bool]


class JobManager(BaseSystem):
    """
    Background job runtime.

    Runs named asynchronous operations on the event loop. Each job gets its
    own ProgressMonitor for cooperative cancellation. Jobs can be scheduled
    with a start delay, during which they sleep until the delay elapses or
    ``Job.wake_up()`` is called.

    Handlers receive the job's monitor as first argument. Coroutine handlers
    are awaited; plain callables run in the default executor.
    """

    def __init__(self, locator, config):
        super().__init__(locator, config)
        self._jobs: List[Job] = []
        self._running = False

    async def initialize(self):
        logger.info("JobManager initializing...")
        self._running = True
        await super().initialize()

    async def shutdown(self):
        self._running = False
        active = self.find()
        for job in active:
            job.cancel()
        tasks = [job._task for job in active if job._task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Stopped {len(tasks)} background jobs")
        await super().shutdown()

    # ==================== Scheduling ====================

    def schedule(
        self,
        name: str,
        handler: Callable,
        *args,
        family: Optional[str] = None,
        delay: float = 0.0,
    ) -> Job:
        """
        Schedule a job and return immediately.

        Args:
            name: Human readable job title
            handler: Callable invoked as handler(monitor, *args)
            *args: Extra handler arguments
            family: Optional grouping key used by predicates
            delay: Seconds the job sleeps before starting (cut short by wake_up)

        Returns:
            The scheduled Job
        """
        job = Job(name=name, handler=handler, args=args, family=family, delay=delay)
        job.monitor.set_task_name(name)
        if delay > 0:
            job.state = JobState.SLEEPING
        self._prune()
        self._jobs.append(job)
        job._task = asyncio.get_running_loop().create_task(self._run(job))
        logger.debug(f"Job scheduled: {name} [family={family}, delay={delay}s]")
        return job

    async def _run(self, job: Job):
        if job.delay > 0:
            try:
                await asyncio.wait_for(job._wake.wait(), timeout=job.delay)
            except asyncio.TimeoutError:
                pass

        if job.monitor.is_canceled:
            self._finish(job, JobState.CANCELED)
            return

        job.state = JobState.RUNNING
        logger.debug(f"Job started: {job.name}")
        try:
            if inspect.iscoroutinefunction(job.handler):
                result = await job.handler(job.monitor, *job.args)
            else:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, partial(job.handler, job.monitor, *job.args))
        except asyncio.CancelledError:
            self._finish(job, JobState.CANCELED)
            raise
        except Exception as e:
            job.error = str(e)
            logger.exception(f"Job '{job.name}' failed: {e}")
            self._finish(job, JobState.FAILED)
            return

        job.result = result
        if result == JobStatus.CANCEL or job.monitor.is_canceled:
            self._finish(job, JobState.CANCELED)
        else:
            self._finish(job, JobState.COMPLETED)

    def _finish(self, job: Job, state: JobState):
        job.state = state
        job.finished_at = time.monotonic()
        logger.debug(f"Job {state.value}: {job.name}")

    def _prune(self):
        """Forget finished jobs; callers keep their own Job references."""
        self._jobs = [job for job in self._jobs if job.is_active]

    # ==================== Queries ====================

    def find(self, predicate: Optional[JobPredicate] = None) -> List[Job]:
        """Active (pending, sleeping or running) jobs matching ``predicate``."""
        return [
            job for job in self._jobs
            if job.is_active and (predicate is None or predicate(job))
        ]

    def is_idle(self, predicate: Optional[JobPredicate] = None) -> bool:
        """True when no active job matches ``predicate``."""
        return not self.find(predicate)

    def cancel(self, predicate: Optional[JobPredicate] = None) -> int:
        jobs = self.find(predicate)
        for job in jobs:
            job.cancel()
        return len(jobs)

    async def join(self, predicate: Optional[JobPredicate] = None, timeout: Optional[float] = None) -> bool:
        """
        Wait for every active job matching ``predicate`` to finish.

        Returns:
            True if all finished, False on timeout
        """
        tasks = [job._task for job in self.find(predicate) if job._task is not None]
        if not tasks:
            return True
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        return not pending


def in_family(family: str) -> JobPredicate:
    """Predicate matching jobs of one family."""
    return lambda job: job.belongs_to(family)
