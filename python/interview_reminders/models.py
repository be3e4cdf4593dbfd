"""
Pydantic models for the Interview Reminder Engine.

Defines the candidate roster records consumed by the scheduler and the
reminder values it produces for the presentation layer.

Last Grunted: 10/18/2026
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CandidateStatus(str, Enum):
    """Pipeline status of a candidate."""

    APPLIED = "applied"
    SCREENING = "screening"
    OFFER = "offer"
    APPROVED = "approved"
    REJECTED = "rejected"
    HIRED = "hired"
    PENDING = "pending"
    WAITLIST = "waitlist"


class ReminderKind(str, Enum):
    """
    Kinds of reminder surfaced to the user.

    Attributes:
        NOW: The interview started within the "now" window.
        UPCOMING: The interview starts within the reminder horizon.
    """

    NOW = "now"
    UPCOMING = "upcoming"


class InterviewRecord(BaseModel):
    """
    Interview attached to a candidate.

    Date and time are kept as the strings entered by the scheduler UI so that
    a malformed value can be excluded from reminders instead of rejected.

    Example:
        >>> record = InterviewRecord(
        ...     date="2026-10-18",
        ...     time="14:30",
        ...     location="Room 2",
        ...     interviewers=["ana", "bruno"],
        ... )
        >>> record.start_instant()
        datetime.datetime(2026, 10, 18, 14, 30)
    """
    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    time: str = Field(..., description="Local time of day, HH:MM or HH:MM:SS")
    location: str = Field(default="", description="Where the interview takes place")
    interviewers: list[str] = Field(
        default_factory=list,
        description="Ordered list of interviewer names"
    )
    notes: str = Field(default="", description="Free text notes")
    no_show: bool = Field(default=False, description="Candidate failed to attend")

    def start_instant(self) -> Optional[datetime]:
        """
        Combine date and time into a naive local datetime.

        Times carrying a UTC offset (e.g. "10:00+02:00") are not local
        wall-clock times and are treated as unparseable.

        Returns:
            The start instant, or None if date/time cannot be parsed.
        """
        try:
            start = datetime.fromisoformat(f"{self.date.strip()}T{self.time.strip()}")
        except ValueError:
            return None
        if start.tzinfo is not None:
            return None
        return start


class Candidate(BaseModel):
    """
    Candidate as seen by the reminder engine.

    Only the fields the scheduling and agenda features read are modelled;
    resume, scoring and talent-pool data belong to the surrounding application.
    """
    id: int = Field(..., description="Unique candidate identifier")
    name: str = Field(..., min_length=1, description="Candidate display name")
    job_id: str = Field(default="", description="Job posting the candidate applied to")
    status: CandidateStatus = Field(default=CandidateStatus.APPLIED)
    is_archived: bool = Field(default=False)
    interview: Optional[InterviewRecord] = Field(
        default=None,
        description="Scheduled interview, if any"
    )


class ActiveReminder(BaseModel):
    """
    The single notification currently presented to the user.

    Example:
        >>> reminder = ActiveReminder(
        ...     candidate=candidate,
        ...     kind=ReminderKind.NOW,
        ...     bucket=0,
        ...     key="7_0",
        ... )
    """
    candidate: Candidate
    kind: ReminderKind
    bucket: int = Field(..., ge=0, description="Minutes bucket; 0 for 'starting now'")
    key: str = Field(..., description="Serialized reminder key, e.g. '7_30'")
    fired_at: str = Field(
        default_factory=lambda: datetime.now().isoformat(),
        description="ISO 8601 local instant of the tick that fired the reminder"
    )

    model_config = {"frozen": True}


class ReminderSession(BaseModel):
    """
    A logged-in user session that owns reminder state.

    Example:
        >>> session = ReminderSession(
        ...     session_id="rem_20261018_103000_a1b2c3",
        ...     username="ana",
        ...     started_at="2026-10-18T10:30:00Z"
        ... )
    """
    session_id: str = Field(..., description="Unique session identifier")
    username: str = Field(..., description="User the reminders are shown to")
    started_at: str = Field(..., description="ISO 8601 UTC timestamp when session started")
    ended_at: Optional[str] = Field(default=None, description="ISO 8601 UTC timestamp when session ended")
