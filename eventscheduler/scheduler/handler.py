"""Handler contract for scheduled events.

A handler is invoked by name when an event fires. It receives the owning
scheduler, so it can schedule follow-up events, and a shallow copy of the
event params.
"""
import inspect
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .event_scheduler import EventScheduler


@runtime_checkable
class EventHandler(Protocol):
    """Protocol for event handlers."""

    async def execute(self, scheduler: "EventScheduler", params: Any) -> None:
        """Run the handler. Exceptions are fatal to this run and propagate."""
        ...


class CallbackHandler:
    """Adapts a plain function (sync or async) to the EventHandler protocol."""

    def __init__(self, func: Callable[["EventScheduler", Any], Any]):
        self.func = func

    async def execute(self, scheduler: "EventScheduler", params: Any) -> None:
        result = self.func(scheduler, params)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"CallbackHandler({name})"


def as_handler(handler: EventHandler | Callable[..., Any]) -> EventHandler:
    """Return handler unchanged if it has an async execute(), else wrap it.

    An object with a synchronous execute() is wrapped through its bound method.
    """
    if isinstance(handler, EventHandler):
        if inspect.iscoroutinefunction(handler.execute):
            return handler
        return CallbackHandler(handler.execute)
    if callable(handler):
        return CallbackHandler(handler)
    raise TypeError(f"Handler must define execute() or be callable, got {type(handler).__name__}")
