"""
Active Notification Slot.

Single-slot holder for the one reminder currently presented to the user.
The scheduler writes it with occupy(); the presentation layer empties it
with clear() when the user dismisses the notification.

Thread Safety:
    This class is NOT thread-safe. It is owned by one session and touched
    only from the event loop that runs the scheduler.
"""

import logging
from typing import Optional

from .models import ActiveReminder


__all__ = ["ActiveNotificationSlot"]


logger = logging.getLogger(__name__)


class ActiveNotificationSlot:
    """
    Holds at most one ActiveReminder.

    Example:
        >>> slot = ActiveNotificationSlot()
        >>> slot.occupy(reminder)
        >>> slot.is_occupied()
        True
        >>> slot.clear()
        ActiveReminder(...)
    """

    def __init__(self) -> None:
        self._current: Optional[ActiveReminder] = None

    @property
    def current(self) -> Optional[ActiveReminder]:
        """Get the reminder being presented, if any."""
        return self._current

    def is_occupied(self) -> bool:
        """Check whether a reminder is currently presented."""
        return self._current is not None

    def occupy(self, reminder: ActiveReminder) -> Optional[ActiveReminder]:
        """
        Present a reminder, replacing any reminder already shown.

        Callers decide whether replacing is allowed; "now" reminders
        preempt, "upcoming" reminders are only offered to a free slot.

        Args:
            reminder: The reminder to present.

        Returns:
            The reminder that was displaced, or None.
        """
        displaced = self._current
        self._current = reminder
        if displaced is not None:
            logger.info(
                "Reminder %s (%s) preempted by %s (%s)",
                displaced.key,
                displaced.kind.value,
                reminder.key,
                reminder.kind.value,
            )
        return displaced

    def clear(self) -> Optional[ActiveReminder]:
        """
        Empty the slot.

        Returns:
            The reminder that was being presented, or None if the slot was empty.
        """
        cleared = self._current
        self._current = None
        if cleared is not None:
            logger.debug("Reminder %s dismissed", cleared.key)
        return cleared
