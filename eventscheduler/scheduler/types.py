"""Core type definitions for the event scheduler.

This module defines:
- Event status values (the per-event state machine)
- Global scheduler state
- Status summary returned by the scheduler
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any


def now_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


# ============== Event Status ==============

class EventStatus(str, Enum):
    """Status of a scheduled event."""
    SCHEDULED = "scheduled"   # Timer armed, fires after remaining_time
    RUNNING = "running"       # Handler currently executing
    DONE = "done"             # Handler finished, about to be removed or re-added
    PAUSED = "paused"         # Timer disarmed, remaining_time frozen
    RESUMING = "resuming"     # Recognised on the wire, never entered


# Statuses restored by load_events()
RESTORABLE_STATUSES = frozenset({EventStatus.SCHEDULED, EventStatus.PAUSED})

# Statuses for which event_is_scheduled() reports True
ALIVE_STATUSES = frozenset({EventStatus.SCHEDULED, EventStatus.RUNNING, EventStatus.PAUSED})


class SchedulerState(str, Enum):
    """Global state of the scheduler."""
    ACTIVE = "active"
    PAUSED = "paused"


# ============== Result Types ==============

@dataclass
class SchedulerStatus:
    """Status of the scheduler."""
    state: SchedulerState
    events_total: int
    events_scheduled: int
    events_paused: int
    events_running: int

    @property
    def running(self) -> bool:
        return self.state == SchedulerState.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "events_total": self.events_total,
            "events_scheduled": self.events_scheduled,
            "events_paused": self.events_paused,
            "events_running": self.events_running,
        }
