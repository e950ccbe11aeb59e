"""Delayed-callback event scheduler."""
from .errors import (
    SchedulerError,
    DuplicateHandlerError,
    UnknownHandlerError,
    MissingHandlerError,
    DeserializationError,
)
from .event_scheduler import EventScheduler
from .handler import EventHandler, CallbackHandler
from .models import Event, generate_event_id
from .service import EventStore
from .timers import (
    Timer,
    TimerFactory,
    LoopTimerFactory,
    APSchedulerTimerFactory,
    create_timer_factory,
)
from .types import EventStatus, SchedulerState, SchedulerStatus

__all__ = [
    "EventScheduler",
    "EventHandler",
    "CallbackHandler",
    "Event",
    "EventStatus",
    "SchedulerState",
    "SchedulerStatus",
    "EventStore",
    "Timer",
    "TimerFactory",
    "LoopTimerFactory",
    "APSchedulerTimerFactory",
    "create_timer_factory",
    "generate_event_id",
    "SchedulerError",
    "DuplicateHandlerError",
    "UnknownHandlerError",
    "MissingHandlerError",
    "DeserializationError",
]
