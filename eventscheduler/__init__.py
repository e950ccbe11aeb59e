"""eventscheduler - in-process delayed-callback scheduler"""
from .config import Settings, settings
from .scheduler import (
    EventScheduler,
    EventHandler,
    CallbackHandler,
    Event,
    EventStatus,
    SchedulerState,
    EventStore,
    SchedulerError,
    DuplicateHandlerError,
    UnknownHandlerError,
    MissingHandlerError,
    DeserializationError,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "settings",
    "EventScheduler",
    "EventHandler",
    "CallbackHandler",
    "Event",
    "EventStatus",
    "SchedulerState",
    "EventStore",
    "SchedulerError",
    "DuplicateHandlerError",
    "UnknownHandlerError",
    "MissingHandlerError",
    "DeserializationError",
]
