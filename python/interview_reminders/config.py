"""
Reminder engine configuration.

Tunables are read from the environment (and an optional .env file next to
the python/ directory) with strict validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)


DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_NOW_WINDOW_SECONDS = 60.0
DEFAULT_HORIZON_MINUTES = 30
DEFAULT_BUCKET_MINUTES = 5


@dataclass(frozen=True)
class ReminderConfig:
    """Scheduler tunables."""

    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    now_window_seconds: float = DEFAULT_NOW_WINDOW_SECONDS
    horizon_minutes: int = DEFAULT_HORIZON_MINUTES
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES

    def __post_init__(self) -> None:
        if self.poll_interval_seconds <= 0:
            raise RuntimeError(
                f"poll_interval_seconds must be positive. Got: {self.poll_interval_seconds}."
            )
        if self.now_window_seconds <= 0:
            raise RuntimeError(
                f"now_window_seconds must be positive. Got: {self.now_window_seconds}."
            )
        if self.bucket_minutes <= 0:
            raise RuntimeError(f"bucket_minutes must be positive. Got: {self.bucket_minutes}.")
        if self.horizon_minutes < self.bucket_minutes:
            raise RuntimeError(
                f"horizon_minutes ({self.horizon_minutes}) must be at least "
                f"bucket_minutes ({self.bucket_minutes})."
            )
        if self.horizon_minutes % self.bucket_minutes:
            raise RuntimeError(
                f"horizon_minutes ({self.horizon_minutes}) must be a multiple of "
                f"bucket_minutes ({self.bucket_minutes})."
            )

    @property
    def buckets(self) -> tuple[int, ...]:
        """Upcoming buckets in ascending order, e.g. (5, 10, ..., 30)."""
        return tuple(range(self.bucket_minutes, self.horizon_minutes + 1, self.bucket_minutes))


def _read_number(name: str, default: float, cast: type) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        kind = "an integer" if cast is int else "a number"
        raise RuntimeError(f"{name} must be {kind}. Got: {raw}") from exc


def load_reminder_config() -> ReminderConfig:
    """Load scheduler tunables from environment with strict validation."""
    return ReminderConfig(
        poll_interval_seconds=_read_number(
            "REMINDER_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS, float
        ),
        now_window_seconds=_read_number(
            "REMINDER_NOW_WINDOW_SECONDS", DEFAULT_NOW_WINDOW_SECONDS, float
        ),
        horizon_minutes=_read_number("REMINDER_HORIZON_MINUTES", DEFAULT_HORIZON_MINUTES, int),
        bucket_minutes=_read_number("REMINDER_BUCKET_MINUTES", DEFAULT_BUCKET_MINUTES, int),
    )
