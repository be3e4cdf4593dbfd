"""
Reminder Session Manager.

Ties reminder state to the logged-in session: login creates a fresh
reminder state store, notification slot and scheduler timer; logout stops
the timer exactly once and discards the session's reminder state.

Thread Safety:
    This class is NOT thread-safe. Use it from the event loop that runs
    the scheduler timer.

Last Grunted: 10/18/2026
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from .config import ReminderConfig
from .models import ActiveReminder, Candidate, ReminderSession
from .notification_slot import ActiveNotificationSlot
from .pubsub import ReminderPublisher
from .reminder_state import ReminderStateStore
from .scheduler import Clock, ReminderScheduler, RosterProvider


__all__ = ["ReminderSessionManager"]


logger = logging.getLogger(__name__)


def _format_utc_timestamp(dt: datetime) -> str:
    """
    Format a datetime as ISO 8601 UTC string with 'Z' suffix.

    Args:
        dt: A timezone-aware UTC datetime.

    Returns:
        ISO 8601 formatted string ending with 'Z'.
    """
    return dt.isoformat().replace("+00:00", "Z")


class ReminderSessionManager:
    """
    Owns the reminder engine for one logged-in user at a time.

    Responsibilities:
        - Create session-scoped reminder state, slot and scheduler at login
        - Stop the scheduler timer and drop reminder state at logout
        - Let the presentation layer dismiss the active reminder
        - Collect diagnostics about interviews that cannot be scheduled

    Example:
        >>> manager = ReminderSessionManager(roster.snapshot, publisher=publisher)
        >>> await manager.start_session("ana")
        >>> manager.active_reminder
        >>> await manager.dismiss_active()
        >>> await manager.end_session()
    """

    def __init__(
        self,
        roster_provider: RosterProvider,
        config: ReminderConfig | None = None,
        *,
        publisher: ReminderPublisher | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the manager without an active session.

        Args:
            roster_provider: Returns the latest roster snapshot.
            config: Scheduler tunables shared by every session.
            publisher: Optional fan-out for fired and dismissed reminders.
            clock: Optional clock passed to each scheduler.
        """
        self.config = config or ReminderConfig()
        self._roster_provider = roster_provider
        self._publisher = publisher
        self._clock = clock
        self._session: Optional[ReminderSession] = None
        self._state: Optional[ReminderStateStore] = None
        self._slot: Optional[ActiveNotificationSlot] = None
        self._scheduler: Optional[ReminderScheduler] = None
        self._invalid_candidate_ids: set[int] = set()
        logger.debug("ReminderSessionManager initialized")

    @property
    def session(self) -> Optional[ReminderSession]:
        """Get the current session (possibly ended), if any."""
        return self._session

    @property
    def is_active(self) -> bool:
        """Check if there is an active session."""
        return self._session is not None and self._session.ended_at is None

    @property
    def scheduler(self) -> Optional[ReminderScheduler]:
        return self._scheduler

    @property
    def state(self) -> Optional[ReminderStateStore]:
        return self._state

    @property
    def slot(self) -> Optional[ActiveNotificationSlot]:
        return self._slot

    @property
    def active_reminder(self) -> Optional[ActiveReminder]:
        """Get the reminder currently presented, if any."""
        return self._slot.current if self._slot is not None else None

    @property
    def invalid_candidate_ids(self) -> list[int]:
        """Candidates whose interview date/time could not be parsed this session."""
        return sorted(self._invalid_candidate_ids)

    async def start_session(self, username: str) -> ReminderSession:
        """
        Log a user in and start the reminder timer.

        Any existing session is ended first, so at most one timer is live.

        Args:
            username: The user that will receive reminders.

        Returns:
            The newly created ReminderSession.

        Raises:
            ValueError: If username is empty.
        """
        username = (username or "").strip()
        if not username:
            raise ValueError("username must not be empty")

        if self.is_active:
            logger.info("Ending existing session before starting new one")
            await self.end_session()

        timestamp = datetime.now(timezone.utc)
        session_id = f"rem_{timestamp.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"
        self._session = ReminderSession(
            session_id=session_id,
            username=username,
            started_at=_format_utc_timestamp(timestamp),
        )
        self._state = ReminderStateStore()
        self._slot = ActiveNotificationSlot()
        self._invalid_candidate_ids = set()
        self._scheduler = ReminderScheduler(
            roster_provider=self._roster_provider,
            state=self._state,
            slot=self._slot,
            config=self.config,
            clock=self._clock,
            on_reminder=self._publisher.publish_reminder if self._publisher else None,
            on_invalid_record=self._record_invalid,
        )
        await self._scheduler.start()

        logger.info("Started session %s for user '%s'", session_id, username)
        if self._publisher is not None:
            await self._publisher.publish_system(f"Reminders enabled for {username}")
        return self._session

    async def end_session(self) -> Optional[ReminderSession]:
        """
        Log the current user out.

        Stops the scheduler timer and discards the session's reminder state
        and active reminder. The ended session stays retrievable.

        Returns:
            The ended session, or None if no session was active.
        """
        if not self.is_active:
            logger.debug("end_session called but no active session")
            return None

        # Marked ended before awaiting so an overlapping logout is a no-op
        self._session.ended_at = _format_utc_timestamp(datetime.now(timezone.utc))
        ended_session = self._session

        scheduler = self._scheduler
        self._scheduler = None
        if scheduler is not None:
            await scheduler.stop()

        if self._session is ended_session:
            self._state = None
            self._slot = None

        logger.info("Ended session %s", ended_session.session_id)
        if self._publisher is not None:
            await self._publisher.publish_system(f"Reminders disabled for {ended_session.username}")
        return ended_session

    async def run_tick(self, now: datetime | None = None) -> Optional[ActiveReminder]:
        """
        Run one scheduler tick outside the timer cadence.

        Raises:
            ValueError: If no session is active.
        """
        if self._scheduler is None or not self.is_active:
            raise ValueError("No active session. Call start_session() first.")
        return await self._scheduler.run_tick(now)

    async def dismiss_active(self) -> Optional[ActiveReminder]:
        """
        Clear the active reminder on user dismissal.

        Returns:
            The dismissed reminder, or None if nothing was shown.
        """
        if self._slot is None:
            return None
        dismissed = self._slot.clear()
        if dismissed is not None and self._publisher is not None:
            await self._publisher.publish_dismissed(dismissed)
        return dismissed

    def _record_invalid(self, candidate: Candidate) -> None:
        if candidate.id not in self._invalid_candidate_ids:
            logger.warning(
                "Candidate %d ('%s') has an unparseable interview date/time; "
                "excluded from reminders",
                candidate.id,
                candidate.name,
            )
            self._invalid_candidate_ids.add(candidate.id)

    def get_status(self) -> dict[str, Any]:
        """
        Summarize the session for status endpoints.

        Returns:
            Dictionary with session, scheduler and reminder state details.
        """
        if self._session is None:
            return {
                "session_active": False,
                "session_id": None,
                "username": None,
                "started_at": None,
                "ended_at": None,
                "scheduler_running": False,
                "tick_count": 0,
                "reminders_fired": 0,
                "fired_keys": [],
                "active_reminder": None,
                "invalid_candidate_ids": [],
            }

        scheduler = self._scheduler
        active = self.active_reminder
        return {
            "session_active": self.is_active,
            "session_id": self._session.session_id,
            "username": self._session.username,
            "started_at": self._session.started_at,
            "ended_at": self._session.ended_at,
            "scheduler_running": scheduler.is_running if scheduler else False,
            "tick_count": scheduler.tick_count if scheduler else 0,
            "reminders_fired": scheduler.fired_count if scheduler else 0,
            "fired_keys": self._state.snapshot() if self._state else [],
            "active_reminder": active.model_dump(mode="json") if active else None,
            "invalid_candidate_ids": self.invalid_candidate_ids,
        }
