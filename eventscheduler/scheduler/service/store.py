"""Snapshot file store for the event table.

The scheduler only produces and consumes strings; this store is the
transport that puts them on disk:
- *.json (or any other suffix): the save_events() string, verbatim
- *.yaml / *.yml: the same records as a user-editable YAML document

Writes are atomic (temp file + rename).
"""
import json
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from loguru import logger

from ..errors import DeserializationError

if TYPE_CHECKING:
    from ..event_scheduler import EventScheduler

logger = logger.bind(module="scheduler.store")

_YAML_SUFFIXES = (".yaml", ".yml")

_YAML_HEADER = (
    "# Event Scheduler Snapshot\n"
    "# Pending events saved by the scheduler. Edit with care:\n"
    "# remainingTime and duration are milliseconds.\n\n"
)


class EventStore:
    """Persists scheduler snapshots to a single file."""

    def __init__(self, path: str | Path):
        """Initialize store.

        Args:
            path: Snapshot file; its suffix selects JSON or YAML
        """
        self.path = Path(path).expanduser()

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in _YAML_SUFFIXES

    def exists(self) -> bool:
        return self.path.exists()

    # ============== Save ==============

    def save(self, scheduler: "EventScheduler") -> int:
        """Write the scheduler's events to the snapshot file.

        Returns:
            Number of events written
        """
        data = scheduler.save_events()
        count = len(scheduler.get_all_events())
        self.write(data)
        logger.info(f"Saved {count} events to {self.path}")
        return count

    def write(self, data: str) -> None:
        """Write a save_events() string to the snapshot file (atomic)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            if self.is_yaml:
                f.write(_YAML_HEADER)
                yaml.safe_dump(
                    {"events": json.loads(data)},
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                )
            else:
                f.write(data)
        temp_path.replace(self.path)

    # ============== Restore ==============

    def read(self) -> str | None:
        """Read the snapshot back as a save_events() string.

        Returns:
            The string, or None if there is no snapshot file

        Raises:
            DeserializationError: if a YAML snapshot cannot be parsed
        """
        if not self.path.exists():
            return None

        text = self.path.read_text(encoding="utf-8")
        if not self.is_yaml:
            return text

        try:
            doc = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise DeserializationError(f"Malformed YAML snapshot {self.path}: {e}") from e

        if not isinstance(doc, dict):
            raise DeserializationError(f"YAML snapshot {self.path} must be a mapping with an 'events' list")
        return json.dumps(doc.get("events") or [], ensure_ascii=False)

    def restore(self, scheduler: "EventScheduler") -> int:
        """Load the snapshot into the scheduler.

        Returns:
            Number of events restored (0 when there is no snapshot)
        """
        data = self.read()
        if data is None:
            logger.info(f"No snapshot at {self.path}")
            return 0

        restored = scheduler.load_events(data)
        logger.info(f"Restored {restored} events from {self.path}")
        return restored

    def clear(self) -> None:
        """Delete the snapshot file if present."""
        self.path.unlink(missing_ok=True)
