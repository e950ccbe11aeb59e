"""Data models for scheduled events."""
from dataclasses import dataclass, field
from typing import Any
import uuid

from .timers import Timer
from .types import EventStatus, ALIVE_STATUSES, now_ms


def generate_event_id() -> str:
    """Default id generator for events added without an explicit id."""
    return str(uuid.uuid4())


@dataclass
class Event:
    """One scheduled unit of deferred handler invocation.

    Records are owned by the EventScheduler; callers inspect them through
    get_all_events() but never mutate them directly.
    """
    # Identity
    id: str = field(default_factory=generate_event_id)
    lookup_name: str = ""

    # Handler input, passed as a shallow copy on every run
    params: Any = None

    # Runtime state
    status: EventStatus = EventStatus.PAUSED
    added_at_time: int = field(default_factory=now_ms)  # ms since epoch, reset on each arm
    remaining_time: int = 0  # ms left, relative to added_at_time

    # Definition
    duration: int = 0  # ms
    auto_repeat: bool = False

    # Armed timer, never serialized
    timer: Timer | None = field(default=None, repr=False, compare=False)
    # Bumped on every arm; a fire carrying an older value is stale
    generation: int = field(default=0, repr=False, compare=False)

    @property
    def is_alive(self) -> bool:
        return self.status in ALIVE_STATUSES

    def elapsed(self, current_ms: int) -> int:
        """Milliseconds since the event was last armed."""
        return current_ms - self.added_at_time

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization (timer excluded)."""
        return {
            "id": self.id,
            "lookupName": self.lookup_name,
            "params": self.params,
            "status": self.status.value,
            "addedAtTime": self.added_at_time,
            "remainingTime": self.remaining_time,
            "duration": self.duration,
            "autoRepeat": self.auto_repeat,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        """Create from dictionary. The timer is always reset."""
        return cls(
            id=data["id"],
            lookup_name=data["lookupName"],
            params=data.get("params"),
            status=EventStatus(data["status"]),
            added_at_time=data.get("addedAtTime", now_ms()),
            remaining_time=data.get("remainingTime", 0),
            duration=data["duration"],
            auto_repeat=data.get("autoRepeat", False),
        )
