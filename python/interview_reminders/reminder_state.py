"""Reminder state store for session-owned reminder deduplication."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

NOW_BUCKET = 0


@dataclass(frozen=True, order=True)
class ReminderKey:
    """Composite key of one reminder class for one candidate."""

    candidate_id: int
    bucket: int

    @property
    def is_now(self) -> bool:
        return self.bucket == NOW_BUCKET

    def serialize(self) -> str:
        """Return the display form, e.g. ``"7_30"``."""
        return f"{self.candidate_id}_{self.bucket}"


class ReminderStateStore:
    """Holds the set of reminder keys already fired during a session."""

    def __init__(self) -> None:
        self._fired: set[ReminderKey] = set()

    def __len__(self) -> int:
        return len(self._fired)

    def __contains__(self, key: object) -> bool:
        return key in self._fired

    def has_fired(self, key: ReminderKey) -> bool:
        return key in self._fired

    def mark_fired(self, key: ReminderKey) -> None:
        self._fired.add(key)

    def prune_except(self, candidate_ids: Iterable[int]) -> list[ReminderKey]:
        """
        Drop every key whose candidate is not in ``candidate_ids``.

        Returns the removed keys, sorted.
        """
        keep = set(candidate_ids)
        removed = sorted(key for key in self._fired if key.candidate_id not in keep)
        if removed:
            self._fired.difference_update(removed)
        return removed

    def keys(self) -> list[ReminderKey]:
        return sorted(self._fired)

    def clear(self) -> None:
        """Forget every fired key."""
        self._fired.clear()

    def snapshot(self) -> list[str]:
        """Return ordered serialized keys for APIs and status output."""
        return [key.serialize() for key in self.keys()]
