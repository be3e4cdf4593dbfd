"""
Candidate Roster.

In-memory interview record store backing the reminder engine. Owns the
candidates and their interview records; the scheduler reads it only through
snapshot().

Candidates are never mutated in place. Every change stores a new model
copy, so a snapshot handed to the scheduler stays consistent while the
roster keeps changing.

Last Grunted: 10/18/2026
"""

import logging
from datetime import date as date_type
from datetime import datetime
from typing import Iterable, Literal, Optional

from .models import Candidate, CandidateStatus, InterviewRecord


__all__ = ["CandidateRoster", "CandidateNotFoundError"]


logger = logging.getLogger(__name__)


class CandidateNotFoundError(Exception):
    """Raised when a roster operation names an unknown candidate."""

    def __init__(self, candidate_id: int) -> None:
        self.candidate_id = candidate_id
        super().__init__(f"Candidate {candidate_id} not found")


def _interview_day(record: InterviewRecord) -> Optional[date_type]:
    try:
        return date_type.fromisoformat(record.date.strip())
    except ValueError:
        return None


class CandidateRoster:
    """
    Keyed store of candidates and their interviews.

    Example:
        >>> roster = CandidateRoster()
        >>> roster.upsert(Candidate(id=1, name="Ana Souza"))
        >>> roster.schedule_interview(1, InterviewRecord(date="2026-10-18", time="14:00"))
        >>> roster.snapshot()[0].interview.time
        '14:00'
    """

    def __init__(self, candidates: Iterable[Candidate] = ()) -> None:
        self._candidates: dict[int, Candidate] = {}
        for candidate in candidates:
            self.upsert(candidate)

    def __len__(self) -> int:
        return len(self._candidates)

    def snapshot(self) -> tuple[Candidate, ...]:
        """Return the current roster in insertion order."""
        return tuple(self._candidates.values())

    def get(self, candidate_id: int) -> Candidate:
        """
        Look up one candidate.

        Raises:
            CandidateNotFoundError: If the id is unknown.
        """
        try:
            return self._candidates[candidate_id]
        except KeyError:
            raise CandidateNotFoundError(candidate_id) from None

    def upsert(self, candidate: Candidate) -> Candidate:
        """Insert or replace a candidate."""
        stored = candidate.model_copy(deep=True)
        self._candidates[stored.id] = stored
        return stored

    def remove(self, candidate_id: int) -> Candidate:
        """
        Permanently delete a candidate.

        Raises:
            CandidateNotFoundError: If the id is unknown.
        """
        removed = self.get(candidate_id)
        del self._candidates[candidate_id]
        logger.info("Removed candidate %d", candidate_id)
        return removed

    def _replace(self, candidate_id: int, **changes: object) -> Candidate:
        updated = self.get(candidate_id).model_copy(update=changes)
        self._candidates[candidate_id] = updated
        return updated

    # -------------------------------------------------------------------------
    # Interview operations
    # -------------------------------------------------------------------------

    def schedule_interview(self, candidate_id: int, record: InterviewRecord) -> Candidate:
        """
        Attach an interview to a candidate, replacing any existing one.

        The candidate moves to the approved status.

        Raises:
            CandidateNotFoundError: If the id is unknown.
        """
        if record.start_instant() is None:
            logger.warning(
                "Interview for candidate %d has unparseable date/time %r %r; "
                "it will not produce reminders",
                candidate_id,
                record.date,
                record.time,
            )
        updated = self._replace(
            candidate_id,
            interview=record.model_copy(deep=True),
            status=CandidateStatus.APPROVED,
        )
        logger.info(
            "Scheduled interview for candidate %d at %s %s",
            candidate_id,
            record.date,
            record.time,
        )
        return updated

    def bulk_schedule(
        self, candidate_ids: Iterable[int], record: InterviewRecord
    ) -> list[Candidate]:
        """
        Schedule the same interview slot for several candidates.

        Notes are per candidate, so each copy starts with empty notes.
        Unknown ids are skipped.
        """
        shared = record.model_copy(update={"notes": ""})
        scheduled: list[Candidate] = []
        for candidate_id in candidate_ids:
            if candidate_id not in self._candidates:
                logger.debug("bulk_schedule skipping unknown candidate %d", candidate_id)
                continue
            scheduled.append(self.schedule_interview(candidate_id, shared))
        return scheduled

    def cancel_interview(self, candidate_id: int) -> Candidate:
        """
        Remove a candidate's interview.

        The candidate goes back to the approved status.

        Raises:
            CandidateNotFoundError: If the id is unknown.
        """
        updated = self._replace(
            candidate_id,
            interview=None,
            status=CandidateStatus.APPROVED,
        )
        logger.info("Cancelled interview for candidate %d", candidate_id)
        return updated

    def bulk_cancel(self, candidate_ids: Iterable[int]) -> list[Candidate]:
        """Cancel interviews for several candidates. Unknown ids are skipped."""
        return [
            self.cancel_interview(candidate_id)
            for candidate_id in candidate_ids
            if candidate_id in self._candidates
        ]

    def mark_no_show(self, candidate_id: int, no_show: bool = True) -> Candidate:
        """
        Flag (or unflag) a candidate as not having attended.

        Raises:
            CandidateNotFoundError: If the id is unknown.
            ValueError: If the candidate has no interview.
        """
        candidate = self.get(candidate_id)
        if candidate.interview is None:
            raise ValueError(f"Candidate {candidate_id} has no scheduled interview")
        updated = self._replace(
            candidate_id,
            interview=candidate.interview.model_copy(update={"no_show": no_show}),
        )
        logger.info("Candidate %d no_show=%s", candidate_id, no_show)
        return updated

    def list_interviews(
        self,
        mode: Literal["upcoming", "past"] = "upcoming",
        job_id: Optional[str] = None,
        interviewer: Optional[str] = None,
        today: Optional[date_type] = None,
    ) -> list[Candidate]:
        """
        List candidates with interviews for the agenda view.

        Upcoming interviews are those dated today or later, sorted soonest
        first; past interviews are dated before today, most recent first.
        Records with an unparseable date/time are left out.

        Args:
            mode: "upcoming" or "past".
            job_id: Only candidates for this job.
            interviewer: Only interviews this person takes part in.
            today: Reference day; defaults to the local current date.
        """
        if mode not in ("upcoming", "past"):
            raise ValueError(f"Invalid mode '{mode}'. Must be 'upcoming' or 'past'")
        today = today or datetime.now().date()

        rows: list[tuple[datetime, Candidate]] = []
        for candidate in self._candidates.values():
            record = candidate.interview
            if record is None:
                continue
            day = _interview_day(record)
            start = record.start_instant()
            if day is None or start is None:
                continue
            if mode == "upcoming" and day < today:
                continue
            if mode == "past" and day >= today:
                continue
            if job_id is not None and candidate.job_id != job_id:
                continue
            if interviewer is not None and interviewer not in record.interviewers:
                continue
            rows.append((start, candidate))

        rows.sort(key=lambda row: row[0], reverse=(mode == "past"))
        return [candidate for _, candidate in rows]
