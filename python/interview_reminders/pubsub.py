"""
Real-time Pub/Sub for Reminder Events.

Provides an in-memory pub/sub system for streaming reminder events
(fired, dismissed, session lifecycle) to presentation subscribers.

Uses asyncio queues so the scheduler task and HTTP handlers running on the
same event loop can hand events to any number of UI listeners.

Example usage:
    publisher = ReminderPublisher()
    queue = await publisher.subscribe()
    await publisher.publish_reminder(reminder)
    event = await queue.get()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .models import ActiveReminder, ReminderKind

logger = logging.getLogger(__name__)


class ReminderEventType(str, Enum):
    """
    Types of reminder events published to the stream.

    Attributes:
        FIRED: The scheduler surfaced a reminder.
        DISMISSED: The user dismissed the active reminder.
        SYSTEM: Session start/end and other lifecycle messages.
    """

    FIRED = "fired"
    DISMISSED = "dismissed"
    SYSTEM = "system"


def _get_utc_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        ISO-formatted UTC timestamp string.
    """
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class ReminderEvent:
    """
    A single publishable reminder event.

    Attributes:
        event_type: Category of the event.
        content: Human readable summary.
        timestamp: UTC timestamp when the event was created.
        reminder: The reminder the event refers to, if any.
    """

    event_type: ReminderEventType
    content: str
    timestamp: str = field(default_factory=_get_utc_timestamp)
    reminder: ActiveReminder | None = None

    def to_dict(self) -> dict[str, object]:
        """
        Convert event to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the event.
        """
        return {
            "event_type": self.event_type.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "reminder": self.reminder.model_dump(mode="json") if self.reminder else None,
        }

    def to_json(self) -> str:
        """
        Convert event to JSON string.

        Returns:
            JSON string representation of the event.
        """
        return json.dumps(self.to_dict())


def describe_reminder(reminder: ActiveReminder) -> str:
    """Build the notification text shown for a reminder."""
    name = reminder.candidate.name
    interview = reminder.candidate.interview
    at = f" at {interview.time}" if interview else ""
    if reminder.kind == ReminderKind.NOW:
        return f"Interview with {name} is starting now{at}"
    return f"Interview with {name} starts in {reminder.bucket} minutes or less{at}"


class ReminderPublisher:
    """
    Publisher for reminder events.

    Manages multiple subscriber queues and broadcasts events to all.
    Async-safe through an asyncio lock.

    Attributes:
        max_history: Maximum number of events to retain in history.

    Example:
        publisher = ReminderPublisher()

        # Subscribe to receive events
        queue = await publisher.subscribe()

        # Publish an event
        await publisher.publish_reminder(reminder)

        # Receive the event
        event = await queue.get()
    """

    def __init__(self, max_history: int = 100) -> None:
        """
        Initialize the publisher.

        Args:
            max_history: Maximum number of events to retain in history.
        """
        self._subscribers: list[asyncio.Queue[ReminderEvent]] = []
        self._history: list[ReminderEvent] = []
        self._max_history = max_history
        self._lock = asyncio.Lock()
        logger.info("ReminderPublisher initialized with max_history=%d", max_history)

    async def subscribe(self) -> asyncio.Queue[ReminderEvent]:
        """
        Subscribe to reminder events.

        Returns an asyncio.Queue that first receives the retained history,
        then every event published afterwards. Caller is responsible for
        calling unsubscribe when done.

        Returns:
            Queue that will receive published events.
        """
        queue: asyncio.Queue[ReminderEvent] = asyncio.Queue()
        async with self._lock:
            self._subscribers.append(queue)
            for event in self._history:
                await queue.put(event)
        logger.debug("New subscriber added. Total: %d", len(self._subscribers))
        return queue

    async def unsubscribe(self, queue: asyncio.Queue[ReminderEvent]) -> None:
        """
        Remove a subscriber.

        Args:
            queue: The queue to unsubscribe.
        """
        async with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)
        logger.debug("Subscriber removed. Total: %d", len(self._subscribers))

    async def publish(self, event: ReminderEvent) -> None:
        """
        Publish an event to all subscribers and keep it in history.

        Args:
            event: The event to publish.
        """
        async with self._lock:
            self._history.append(event)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

            for queue in self._subscribers:
                try:
                    await queue.put(event)
                except Exception as e:
                    logger.warning("Failed to publish to subscriber: %s", e)

        logger.debug("Published reminder event: %s", event.event_type.value)

    async def publish_reminder(self, reminder: ActiveReminder) -> None:
        """
        Publish a fired reminder.

        Args:
            reminder: The reminder that was surfaced.
        """
        await self.publish(
            ReminderEvent(
                event_type=ReminderEventType.FIRED,
                content=describe_reminder(reminder),
                reminder=reminder,
            )
        )

    async def publish_dismissed(self, reminder: ActiveReminder) -> None:
        """
        Publish a dismissal of the active reminder.

        Args:
            reminder: The reminder that was dismissed.
        """
        await self.publish(
            ReminderEvent(
                event_type=ReminderEventType.DISMISSED,
                content=f"Reminder {reminder.key} dismissed",
                reminder=reminder,
            )
        )

    async def publish_system(self, content: str) -> None:
        """
        Publish system message.

        Args:
            content: System message content.
        """
        await self.publish(ReminderEvent(event_type=ReminderEventType.SYSTEM, content=content))

    async def get_history(self) -> list[ReminderEvent]:
        """
        Get the event history (async-safe).

        Returns:
            Copy of the event history list.
        """
        async with self._lock:
            return list(self._history)

    async def clear_history(self) -> None:
        """Clear the event history (async-safe)."""
        async with self._lock:
            self._history.clear()
        logger.debug("History cleared")

    @property
    def subscriber_count(self) -> int:
        """
        Get the number of active subscribers.

        Note: This is not async-safe and provides an approximate count.
        """
        return len(self._subscribers)
