"""Configuration - scheduler runtime settings"""
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
load_dotenv(override=True)


@dataclass
class Settings:
    """Scheduler settings"""

    debug: bool = False

    # pause_all() polls this often while waiting for running handlers
    idle_poll_interval_ms: int = 10

    # Timer fabric: "asyncio" (loop.call_later) or "apscheduler"
    timer_backend: str = "asyncio"

    # Snapshot location used by EventStore
    data_dir: Path = field(default_factory=lambda: Path.home() / ".eventscheduler" / "data")
    snapshot_file: str = "events.json"

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_file

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables"""
        return cls(
            debug=os.getenv("DEBUG", "").lower() in ("1", "true"),
            idle_poll_interval_ms=int(os.getenv("EVENTSCHEDULER_IDLE_POLL_MS", "10")),
            timer_backend=os.getenv("EVENTSCHEDULER_TIMER_BACKEND", "asyncio").lower(),
            data_dir=Path(os.getenv(
                "EVENTSCHEDULER_DATA_DIR", str(Path.home() / ".eventscheduler" / "data")
            )).expanduser(),
            snapshot_file=os.getenv("EVENTSCHEDULER_SNAPSHOT_FILE", "events.json"),
        )


# Global settings instance
settings = Settings.from_env()
