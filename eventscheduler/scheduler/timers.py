"""Timer fabric for the event scheduler.

The scheduler never talks to the event loop directly. It asks a TimerFactory
to run a coroutine function after a delay and keeps the returned Timer so it
can cancel the pending fire. Two factories are provided:
- LoopTimerFactory: asyncio loop.call_later, the default
- APSchedulerTimerFactory: one-shot date jobs on an APScheduler AsyncIOScheduler
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Protocol

from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

logger = logger.bind(module="scheduler.timers")

# Zero-argument coroutine function (or functools.partial of one)
TimerCallback = Callable[[], Awaitable[None]]


# ============== Protocol Definitions ==============

class Timer(Protocol):
    """A pending fire that can be cancelled before it happens."""

    def cancel(self) -> None:
        """Cancel the pending fire. Calling it again, or after the fire, does nothing."""
        ...


class TimerFactory(Protocol):
    """Creates timers."""

    def schedule(self, delay_ms: int, callback: TimerCallback) -> Timer:
        """Run callback once after delay_ms milliseconds."""
        ...

    def shutdown(self) -> None:
        """Cancel everything still pending and release resources."""
        ...


# ============== asyncio ==============

class LoopTimer:
    """Timer backed by an asyncio.TimerHandle."""

    def __init__(self, factory: "LoopTimerFactory"):
        self._factory = factory
        self._handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        self._factory._pending.discard(self)


class LoopTimerFactory:
    """Arms timers on the running event loop with loop.call_later.

    A fired callback runs as its own task, so different events run
    concurrently. Task failures have no caller to propagate to and are
    logged with their traceback.
    """

    def __init__(self):
        self._pending: set[LoopTimer] = set()
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, delay_ms: int, callback: TimerCallback) -> LoopTimer:
        loop = asyncio.get_running_loop()
        timer = LoopTimer(self)
        timer._handle = loop.call_later(max(delay_ms, 0) / 1000, self._fire, timer, callback)
        self._pending.add(timer)
        return timer

    def _fire(self, timer: LoopTimer, callback: TimerCallback) -> None:
        timer._handle = None
        self._pending.discard(timer)
        task = asyncio.ensure_future(callback())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Timer callback failed: {exc}")

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def shutdown(self) -> None:
        for timer in list(self._pending):
            timer.cancel()


# ============== APScheduler ==============

class APSchedulerTimer:
    """Timer backed by a one-shot APScheduler job."""

    def __init__(self, job: Any):
        self._job = job

    def cancel(self) -> None:
        if self._job is None:
            return
        try:
            self._job.remove()
        except JobLookupError:
            # Date jobs are dropped from the job store once they fire
            pass
        self._job = None


class APSchedulerTimerFactory:
    """Arms timers as date-trigger jobs on an AsyncIOScheduler.

    The APScheduler instance is started lazily on the first schedule() call,
    which must happen inside a running event loop.
    """

    def __init__(self, scheduler: AsyncIOScheduler | None = None):
        self.scheduler = scheduler or AsyncIOScheduler(
            job_defaults={
                "coalesce": False,
                "max_instances": 1,
                "misfire_grace_time": None,
            }
        )
        self.scheduler.add_listener(self._job_error, EVENT_JOB_ERROR)

    def schedule(self, delay_ms: int, callback: TimerCallback) -> APSchedulerTimer:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("APScheduler timer backend started")

        run_date = datetime.now(timezone.utc) + timedelta(milliseconds=max(delay_ms, 0))
        job = self.scheduler.add_job(callback, trigger="date", run_date=run_date)
        return APSchedulerTimer(job)

    def _job_error(self, event: Any) -> None:
        logger.error(f"Timer job {event.job_id} failed: {event.exception}")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("APScheduler timer backend stopped")


def create_timer_factory(backend: str | None = None) -> TimerFactory:
    """Build the timer factory named by backend (defaults to settings.timer_backend)."""
    if backend is None:
        from ..config import settings
        backend = settings.timer_backend

    if backend == "asyncio":
        return LoopTimerFactory()
    elif backend == "apscheduler":
        return APSchedulerTimerFactory()
    else:
        raise ValueError(f"Unknown timer backend: {backend}")
