"""Exceptions raised by the event scheduler."""


class SchedulerError(Exception):
    """Base class for scheduler errors."""


class DuplicateHandlerError(SchedulerError):
    """A handler is already registered under this name."""

    def __init__(self, lookup_name: str):
        self.lookup_name = lookup_name
        super().__init__(f"Callback for '{lookup_name}' already registered.")


class UnknownHandlerError(SchedulerError):
    """An event was added for a name with no registered handler."""

    def __init__(self, lookup_name: str):
        self.lookup_name = lookup_name
        super().__init__(f"No callback registered for '{lookup_name}'.")


class MissingHandlerError(SchedulerError):
    """An event fired but its handler is not in the registry."""

    def __init__(self, lookup_name: str, event_id: str):
        self.lookup_name = lookup_name
        self.event_id = event_id
        super().__init__(f"Callback for '{lookup_name}' not found (event {event_id}).")


class DeserializationError(SchedulerError):
    """Persisted event data could not be parsed."""
