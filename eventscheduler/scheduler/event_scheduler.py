"""In-process delayed-callback scheduler.

Clients register named handlers, then add events that fire a handler after a
duration in milliseconds. Events can be paused and resumed individually or
all together, executed immediately, repeated automatically, and saved to /
loaded from a string so pending work survives a restart.

Everything runs on one asyncio event loop. Table mutations happen either
synchronously in the caller or inside a timer-fired task; there are no locks.
"""
import asyncio
import copy
from functools import partial
from types import MappingProxyType
from typing import Any, Callable, Mapping

from loguru import logger

from ..config import settings
from .errors import DuplicateHandlerError, MissingHandlerError, UnknownHandlerError
from .handler import EventHandler, as_handler
from .models import Event, generate_event_id
from .serialization import dump_events, parse_events
from .timers import TimerFactory, create_timer_factory
from .types import (
    EventStatus,
    SchedulerState,
    SchedulerStatus,
    RESTORABLE_STATUSES,
    now_ms,
)

logger = logger.bind(module="scheduler.event_scheduler")


class EventScheduler:
    """Owns the handler registry, the event table and the global run state.

    The scheduler starts paused so callers can register handlers and load
    saved events before anything fires. Call resume_all() to activate it.
    """

    def __init__(
        self,
        timer_factory: TimerFactory | None = None,
        clock: Callable[[], int] | None = None,
        idle_poll_interval_ms: int | None = None,
    ):
        """Initialize the scheduler.

        Args:
            timer_factory: Timer fabric used to arm events (defaults to settings.timer_backend)
            clock: Returns the current time in ms since epoch
            idle_poll_interval_ms: Poll interval of pause_all() while handlers are running
        """
        self._events: dict[str, Event] = {}
        self._callbacks: dict[str, EventHandler] = {}
        self._state = SchedulerState.PAUSED
        # Handlers currently executing, including runs whose record left the table
        self._in_flight = 0

        self.timer_factory = timer_factory or create_timer_factory()
        self._clock = clock or now_ms
        if idle_poll_interval_ms is None:
            idle_poll_interval_ms = settings.idle_poll_interval_ms
        self.idle_poll_interval_ms = idle_poll_interval_ms

    # ============== Registry ==============

    def register_callback(self, lookup_name: str, callback: EventHandler | Callable[..., Any]) -> None:
        """Register the handler run for events named lookup_name.

        Plain functions taking (scheduler, params) are accepted and wrapped.

        Raises:
            DuplicateHandlerError: if lookup_name is already registered
        """
        if lookup_name in self._callbacks:
            raise DuplicateHandlerError(lookup_name)
        self._callbacks[lookup_name] = as_handler(callback)
        logger.info(f"Registered callback: {lookup_name}")

    def has_callback(self, lookup_name: str) -> bool:
        return lookup_name in self._callbacks

    # ============== Inspection ==============

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_paused(self) -> bool:
        return self._state == SchedulerState.PAUSED

    def get_all_events(self) -> Mapping[str, Event]:
        """Read-only view of the event table, in table order."""
        return MappingProxyType(self._events)

    def get_event(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def event_is_scheduled(self, event_id: str) -> bool:
        """True while the event is still in the table (scheduled, running or paused)."""
        event = self._events.get(event_id)
        return event is not None and event.is_alive

    def get_status(self) -> SchedulerStatus:
        counts = {status: 0 for status in EventStatus}
        for event in self._events.values():
            counts[event.status] += 1
        return SchedulerStatus(
            state=self._state,
            events_total=len(self._events),
            events_scheduled=counts[EventStatus.SCHEDULED],
            events_paused=counts[EventStatus.PAUSED],
            events_running=counts[EventStatus.RUNNING],
        )

    # ============== Event CRUD ==============

    def add_event(
        self,
        lookup_name: str,
        params: Any,
        duration: int,
        auto_repeat: bool = False,
        event_id: str | None = None,
    ) -> str:
        """Add an event that fires the lookup_name handler after duration ms.

        An existing event with the same id is replaced; its timer is cancelled.

        Args:
            lookup_name: Name of a registered handler
            params: Data passed (as a shallow copy) to the handler
            duration: Delay in milliseconds
            auto_repeat: Re-add the event after every run
            event_id: Event id, generated when omitted

        Returns:
            The event id

        Raises:
            UnknownHandlerError: if no handler is registered for lookup_name
        """
        if lookup_name not in self._callbacks:
            raise UnknownHandlerError(lookup_name)

        if event_id is None:
            event_id = generate_event_id()

        event = Event(
            id=event_id,
            lookup_name=lookup_name,
            params=params,
            status=EventStatus.PAUSED if self.is_paused else EventStatus.SCHEDULED,
            added_at_time=self._clock(),
            remaining_time=duration,
            duration=duration,
            auto_repeat=auto_repeat,
        )
        self._schedule_event(event)
        return event_id

    def remove_event(self, event_id: str) -> None:
        """Cancel and delete an event. Does nothing if it is absent."""
        event = self._events.pop(event_id, None)
        if event is None:
            return
        self._cancel_timer(event)
        logger.debug(f"Removed event {event_id}")

    def remove_all_by_type(self, lookup_name: str) -> int:
        """Remove every event using the lookup_name handler.

        Returns:
            Number of events removed
        """
        ids = [event_id for event_id, event in self._events.items() if event.lookup_name == lookup_name]
        for event_id in ids:
            self.remove_event(event_id)
        if ids:
            logger.info(f"Removed {len(ids)} events of type {lookup_name}")
        return len(ids)

    # ============== Pause / Resume ==============

    def pause_event(self, event_id: str) -> None:
        """Disarm a scheduled event, keeping the time it has left."""
        event = self._events.get(event_id)
        if event is None or event.status != EventStatus.SCHEDULED:
            return

        self._cancel_timer(event)
        event.remaining_time = max(event.remaining_time - event.elapsed(self._clock()), 0)
        event.status = EventStatus.PAUSED
        logger.debug(f"Paused event {event_id}, {event.remaining_time}ms remaining")

    async def resume_event(self, event_id: str) -> None:
        """Re-arm a paused event for the time it had left.

        While the scheduler itself is paused the event stays paused.
        """
        event = self._events.get(event_id)
        if event is None or event.status != EventStatus.PAUSED:
            return

        event.status = EventStatus.SCHEDULED
        event.added_at_time = self._clock()
        self._schedule_event(event)

    async def pause_all(self) -> None:
        """Pause the scheduler and every scheduled event.

        Returns only once no handler is running. Must not be awaited from
        inside a handler, which would wait for itself.
        """
        self._state = SchedulerState.PAUSED
        for event_id in list(self._events):
            self.pause_event(event_id)
        await self._wait_for_idle()
        logger.info(f"Scheduler paused ({len(self._events)} events)")

    async def resume_all(self) -> None:
        """Activate the scheduler and resume every event, in table order."""
        self._state = SchedulerState.ACTIVE
        event_ids = list(self._events)
        for event_id in event_ids:
            await self.resume_event(event_id)
        logger.info(f"Scheduler resumed ({len(event_ids)} events)")

    async def _wait_for_idle(self) -> None:
        interval = self.idle_poll_interval_ms / 1000
        while self._in_flight:
            logger.debug("Waiting for running events to finish...")
            await asyncio.sleep(interval)

    # ============== Execution ==============

    async def execute_immediately(self, event_id: str) -> None:
        """Run a scheduled event now instead of waiting for its timer.

        Handler errors propagate to the caller.
        """
        event = self._events.get(event_id)
        if event is None or event.status != EventStatus.SCHEDULED:
            return

        self._cancel_timer(event)
        await self._run_event(event)

    def _schedule_event(self, event: Event) -> None:
        """Put event in the table and arm it unless the scheduler is paused."""
        existing = self._events.pop(event.id, None)
        if existing is not None:
            self._cancel_timer(existing)

        if event.remaining_time <= 0:
            event.remaining_time = event.duration
        event.remaining_time = min(event.remaining_time, event.duration)

        if self.is_paused:
            event.status = EventStatus.PAUSED
            event.timer = None
        else:
            event.status = EventStatus.SCHEDULED
            event.added_at_time = self._clock()
            event.generation += 1
            event.timer = self.timer_factory.schedule(
                event.remaining_time, partial(self._fire, event, event.generation)
            )
            logger.debug(f"Scheduled event {event.id} ({event.lookup_name}) in {event.remaining_time}ms")

        self._events[event.id] = event

    async def _fire(self, event: Event, generation: int) -> None:
        """Timer callback."""
        if (
            self._events.get(event.id) is not event
            or event.generation != generation
            or event.status != EventStatus.SCHEDULED
        ):
            # Cancelled, re-armed or replaced after the timer was already due
            return
        event.timer = None
        await self._run_event(event)

    async def _run_event(self, event: Event) -> None:
        handler = self._callbacks.get(event.lookup_name)
        if handler is None:
            logger.error(f"No callback for event {event.id} ({event.lookup_name}), dropping it")
            if self._events.get(event.id) is event:
                self.remove_event(event.id)
            raise MissingHandlerError(event.lookup_name, event.id)

        event.status = EventStatus.RUNNING
        logger.info(f"Executing event {event.id} ({event.lookup_name})")
        self._in_flight += 1
        try:
            await handler.execute(self, copy.copy(event.params))
        finally:
            self._in_flight -= 1
            event.status = EventStatus.DONE
            event.timer = None
            self._complete_event(event)

    def _complete_event(self, event: Event) -> None:
        # Removed or replaced while running: the table entry is not ours anymore
        if self._events.get(event.id) is not event:
            return

        if event.auto_repeat:
            self.add_event(
                event.lookup_name,
                event.params,
                event.duration,
                auto_repeat=True,
                event_id=event.id,
            )
        else:
            self.remove_event(event.id)

    def _cancel_timer(self, event: Event) -> None:
        if event.timer is not None:
            event.timer.cancel()
            event.timer = None

    # ============== Persistence ==============

    def save_events(self) -> str:
        """Serialize every event (without its timer) to a JSON string."""
        return dump_events(self._events.values())

    def load_events(self, data: str | bytes) -> int:
        """Restore events produced by save_events().

        Scheduled and paused records are re-inserted and count down from their
        saved remaining time; other records are dropped. The whole payload is
        validated first, so malformed input leaves the table untouched.

        Returns:
            Number of events restored

        Raises:
            DeserializationError: if data is malformed
        """
        events = parse_events(data)

        restored = 0
        for event in events:
            if event.status not in RESTORABLE_STATUSES:
                logger.debug(f"Skipping event {event.id} with status {event.status.value}")
                continue
            if event.lookup_name not in self._callbacks:
                logger.warning(f"Loaded event {event.id} has no registered callback '{event.lookup_name}'")
            self._schedule_event(event)
            restored += 1

        logger.info(f"Loaded {restored} of {len(events)} events")
        return restored

    # ============== Lifecycle ==============

    async def shutdown(self) -> None:
        """Pause everything, wait for running handlers and release the timer fabric."""
        await self.pause_all()
        self.timer_factory.shutdown()
        logger.info("Scheduler shut down")
