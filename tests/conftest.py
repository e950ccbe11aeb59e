"""Shared fixtures: a manual clock and a timer factory fired by hand."""
import os
import sys
from typing import Any

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from eventscheduler.scheduler import EventScheduler


class FakeClock:
    """Clock returning a controllable ms timestamp."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTimer:
    def __init__(self, delay_ms: int, callback):
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimerFactory:
    """Records armed timers; tests fire them explicitly."""

    def __init__(self):
        self.timers: list[FakeTimer] = []
        self.shut_down = False

    def schedule(self, delay_ms: int, callback) -> FakeTimer:
        timer = FakeTimer(delay_ms, callback)
        self.timers.append(timer)
        return timer

    def shutdown(self) -> None:
        self.shut_down = True

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    async def fire(self, timer: FakeTimer) -> None:
        timer.fired = True
        await timer.callback()


class RecordingHandler:
    """Handler that records every call."""

    def __init__(self):
        self.calls: list[tuple[Any, Any]] = []

    async def execute(self, scheduler, params) -> None:
        self.calls.append((scheduler, params))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def scheduler(timers, clock, handler):
    """Paused scheduler with a 'ping' handler registered."""
    s = EventScheduler(timer_factory=timers, clock=clock, idle_poll_interval_ms=1)
    s.register_callback("ping", handler)
    return s
