"""Text encoding of the event table.

The persisted shape is a JSON array of records:

    [{"id": ..., "lookupName": ..., "params": ..., "status": ...,
      "addedAtTime": ..., "remainingTime": ..., "duration": ..., "autoRepeat": ...}]

There is no version field. Timers are never written.
"""
import json
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import DeserializationError
from .models import Event
from .types import EventStatus


class EventRecord(BaseModel):
    """Validated shape of one persisted event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    lookup_name: str = Field(alias="lookupName")
    params: Any = None
    status: EventStatus
    added_at_time: int = Field(alias="addedAtTime")
    remaining_time: int = Field(alias="remainingTime")
    duration: int
    auto_repeat: bool = Field(default=False, alias="autoRepeat")

    def to_event(self) -> Event:
        return Event.from_dict(self.model_dump(by_alias=True))


def dump_events(events: Iterable[Event]) -> str:
    """Encode events as a JSON array, in iteration order."""
    return json.dumps([event.to_dict() for event in events], ensure_ascii=False)


def validate_records(raw: Any) -> list[Event]:
    """Validate already-decoded data (a list of dicts) into events.

    Raises:
        DeserializationError: if raw is not a list or any record is invalid
    """
    if not isinstance(raw, list):
        raise DeserializationError(
            f"Expected a list of event records, got {type(raw).__name__}"
        )

    try:
        records = [EventRecord.model_validate(item) for item in raw]
    except ValidationError as e:
        raise DeserializationError(f"Invalid event record: {e}") from e

    return [record.to_event() for record in records]


def parse_events(data: str | bytes) -> list[Event]:
    """Decode a string produced by dump_events().

    Either every record is valid or DeserializationError is raised;
    partial results are never returned.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
        raise DeserializationError(f"Malformed event data: {e}") from e

    return validate_records(raw)
