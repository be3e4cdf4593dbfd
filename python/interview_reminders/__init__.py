"""
Interview Reminder Engine Package.

Surfaces "starting now" and "upcoming in N minutes" notifications for the
interviews scheduled in the HR candidate pipeline.

Components:
    - ReminderScheduler: Polling loop that decides, tick by tick, which reminder to fire
    - ReminderStateStore: Session-scoped record of reminder keys already fired
    - ActiveNotificationSlot: Single-slot holder for the reminder shown to the user
    - ReminderSessionManager: Ties reminder state and the timer to login/logout
    - CandidateRoster: In-memory interview record store read by the scheduler
    - ReminderPublisher: Real-time pub/sub for streaming reminder events to the UI
    - Models: Pydantic models for candidates, interviews and reminders

Example:
    >>> from interview_reminders import CandidateRoster, ReminderSessionManager
    >>>
    >>> roster = CandidateRoster()
    >>> manager = ReminderSessionManager(roster.snapshot)
    >>> await manager.start_session("ana")
    >>> manager.active_reminder

Last Grunted: 10/18/2026
"""

from .models import (
    ActiveReminder,
    Candidate,
    CandidateStatus,
    InterviewRecord,
    ReminderKind,
    ReminderSession,
)

from .config import ReminderConfig, load_reminder_config

from .reminder_state import NOW_BUCKET, ReminderKey, ReminderStateStore

from .notification_slot import ActiveNotificationSlot

from .scheduler import ReminderScheduler, compute_bucket

from .roster import CandidateNotFoundError, CandidateRoster

from .pubsub import (
    ReminderEvent,
    ReminderEventType,
    ReminderPublisher,
    describe_reminder,
)

from .session import ReminderSessionManager

from .seed_loader import load_seed_roster


__all__ = [
    # Models
    "ActiveReminder",
    "Candidate",
    "CandidateStatus",
    "InterviewRecord",
    "ReminderKind",
    "ReminderSession",
    # Config
    "ReminderConfig",
    "load_reminder_config",
    # Reminder state
    "NOW_BUCKET",
    "ReminderKey",
    "ReminderStateStore",
    # Slot
    "ActiveNotificationSlot",
    # Scheduler
    "ReminderScheduler",
    "compute_bucket",
    # Roster
    "CandidateNotFoundError",
    "CandidateRoster",
    # Pub/Sub
    "ReminderEvent",
    "ReminderEventType",
    "ReminderPublisher",
    "describe_reminder",
    # Session management
    "ReminderSessionManager",
    # Seed data
    "load_seed_roster",
]

__version__ = "0.1.0"
