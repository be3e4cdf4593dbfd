"""
Interview Reminder Scheduler.

Polls the candidate roster on a fixed cadence and decides, tick by tick,
whether to surface a "starting now" or "upcoming in N minutes" reminder.

Each tick:
    1. Prunes reminder state down to candidates whose interview is still
       upcoming or started within the "now" window.
    2. Fires a "now" reminder for an interview that just started. A "now"
       reminder preempts whatever is shown and ends the tick.
    3. Otherwise, fires an "upcoming" reminder for the nearest interview
       inside the horizon, once per bucket, only if the slot is free.

The timer is a single long-lived asyncio task per session. It reads the
roster through a provider callable, so roster changes never restart it.

Example:
    scheduler = ReminderScheduler(
        roster_provider=roster.snapshot,
        state=ReminderStateStore(),
        slot=ActiveNotificationSlot(),
    )
    await scheduler.start()
    ...
    await scheduler.stop()

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence

from .config import ReminderConfig
from .models import ActiveReminder, Candidate, ReminderKind
from .notification_slot import ActiveNotificationSlot
from .reminder_state import NOW_BUCKET, ReminderKey, ReminderStateStore


__all__ = [
    "ReminderScheduler",
    "RosterProvider",
    "ReminderListener",
    "InvalidRecordHandler",
    "compute_bucket",
]


logger = logging.getLogger(__name__)


RosterProvider = Callable[[], Sequence[Candidate]]
ReminderListener = Callable[[ActiveReminder], Awaitable[None]]
InvalidRecordHandler = Callable[[Candidate], None]
Clock = Callable[[], datetime]


def compute_bucket(
    diff_minutes: float,
    horizon_minutes: int = 30,
    bucket_minutes: int = 5,
) -> Optional[int]:
    """
    Map minutes-until-start onto an upcoming reminder bucket.

    Args:
        diff_minutes: Minutes from now until the interview starts.
        horizon_minutes: Largest distance that still gets a reminder.
        bucket_minutes: Bucket granularity.

    Returns:
        The bucket (a multiple of bucket_minutes), or None when the
        interview is not in (0, horizon_minutes].

    Example:
        >>> compute_bucket(27.0)
        30
        >>> compute_bucket(5.0)
        5
        >>> compute_bucket(30.1) is None
        True
    """
    if diff_minutes <= 0 or diff_minutes > horizon_minutes:
        return None
    return math.ceil(diff_minutes / bucket_minutes) * bucket_minutes


class ReminderScheduler:
    """
    Session-scoped polling scheduler for interview reminders.

    Attributes:
        config: Scheduler tunables.
        state: Reminder keys already fired in this session.
        slot: The single active notification slot.
    """

    def __init__(
        self,
        roster_provider: RosterProvider,
        state: ReminderStateStore,
        slot: ActiveNotificationSlot,
        config: ReminderConfig | None = None,
        *,
        clock: Clock | None = None,
        on_reminder: ReminderListener | None = None,
        on_invalid_record: InvalidRecordHandler | None = None,
    ) -> None:
        """
        Initialize the scheduler without starting the timer.

        Args:
            roster_provider: Returns the latest roster snapshot on each tick.
            state: Session-owned reminder state.
            slot: Session-owned notification slot.
            config: Tunables; defaults to ReminderConfig().
            clock: Returns the current local instant; defaults to datetime.now.
            on_reminder: Awaited with each reminder fired by the timer.
            on_invalid_record: Called for each candidate whose interview
                date/time cannot be parsed.
        """
        self.config = config or ReminderConfig()
        self.state = state
        self.slot = slot
        self._roster_provider = roster_provider
        self._clock = clock or datetime.now
        self._on_reminder = on_reminder
        self._on_invalid_record = on_invalid_record

        self._tick_lock = threading.Lock()
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self._tick_count = 0
        self._fired_count = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        """Whether the timer task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def fired_count(self) -> int:
        return self._fired_count

    # -------------------------------------------------------------------------
    # Tick logic
    # -------------------------------------------------------------------------

    def tick(self, now: datetime | None = None) -> Optional[ActiveReminder]:
        """
        Run one scheduler check.

        Args:
            now: Instant to evaluate at; defaults to the scheduler clock.

        Returns:
            The reminder fired by this tick, or None.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Tick skipped: previous tick still in flight")
            return None
        try:
            return self._run_tick(now if now is not None else self._clock())
        finally:
            self._tick_lock.release()

    def _run_tick(self, now: datetime) -> Optional[ActiveReminder]:
        self._tick_count += 1
        scheduled = self._scheduled_interviews(self._roster_provider())

        self._collect_garbage(scheduled, now)

        reminder = self._check_now(scheduled, now)
        if reminder is None:
            reminder = self._check_upcoming(scheduled, now)

        if reminder is not None:
            self._fired_count += 1
            logger.info(
                "Reminder fired: key=%s kind=%s candidate='%s'",
                reminder.key,
                reminder.kind.value,
                reminder.candidate.name,
            )
        return reminder

    def _scheduled_interviews(
        self, roster: Sequence[Candidate]
    ) -> list[tuple[Candidate, datetime]]:
        """Pair each candidate with a parseable interview start instant."""
        scheduled: list[tuple[Candidate, datetime]] = []
        for candidate in roster:
            if candidate.interview is None:
                continue
            start = candidate.interview.start_instant()
            if start is None:
                logger.debug(
                    "Skipping candidate %d: unparseable interview date/time %r %r",
                    candidate.id,
                    candidate.interview.date,
                    candidate.interview.time,
                )
                if self._on_invalid_record is not None:
                    self._on_invalid_record(candidate)
                continue
            scheduled.append((candidate, start))
        return scheduled

    def _collect_garbage(
        self, scheduled: list[tuple[Candidate, datetime]], now: datetime
    ) -> None:
        # "now" keys stay alive until the now window has elapsed
        window = self.config.now_window_seconds
        relevant = {
            candidate.id
            for candidate, start in scheduled
            if (now - start).total_seconds() < window
        }
        removed = self.state.prune_except(relevant)
        if removed:
            logger.debug(
                "Pruned %d reminder keys: %s",
                len(removed),
                ", ".join(key.serialize() for key in removed),
            )

    def _check_now(
        self, scheduled: list[tuple[Candidate, datetime]], now: datetime
    ) -> Optional[ActiveReminder]:
        window = self.config.now_window_seconds
        for candidate, start in scheduled:
            if candidate.interview.no_show:
                continue
            elapsed = (now - start).total_seconds()
            if not 0 <= elapsed < window:
                continue
            key = ReminderKey(candidate.id, NOW_BUCKET)
            if self.state.has_fired(key):
                continue
            reminder = ActiveReminder(
                candidate=candidate,
                kind=ReminderKind.NOW,
                bucket=key.bucket,
                key=key.serialize(),
                fired_at=now.isoformat(),
            )
            self.slot.occupy(reminder)
            self.state.mark_fired(key)
            return reminder
        return None

    def _check_upcoming(
        self, scheduled: list[tuple[Candidate, datetime]], now: datetime
    ) -> Optional[ActiveReminder]:
        upcoming = [
            (candidate, start)
            for candidate, start in scheduled
            if not candidate.interview.no_show and start > now
        ]
        if not upcoming:
            return None

        candidate, start = min(upcoming, key=lambda pair: pair[1])
        diff_minutes = (start - now).total_seconds() / 60
        bucket = compute_bucket(
            diff_minutes,
            horizon_minutes=self.config.horizon_minutes,
            bucket_minutes=self.config.bucket_minutes,
        )
        if bucket is None:
            return None

        key = ReminderKey(candidate.id, bucket)
        if self.state.has_fired(key) or self.slot.is_occupied():
            return None

        reminder = ActiveReminder(
            candidate=candidate,
            kind=ReminderKind.UPCOMING,
            bucket=key.bucket,
            key=key.serialize(),
            fired_at=now.isoformat(),
        )
        self.slot.occupy(reminder)
        self.state.mark_fired(key)
        return reminder

    # -------------------------------------------------------------------------
    # Timer lifecycle
    # -------------------------------------------------------------------------

    async def run_tick(self, now: datetime | None = None) -> Optional[ActiveReminder]:
        """
        Run one tick and hand any fired reminder to the listener.

        A failing listener is logged and does not propagate.
        """
        reminder = self.tick(now)
        if reminder is not None and self._on_reminder is not None:
            try:
                await self._on_reminder(reminder)
            except Exception as e:
                logger.warning("Reminder listener failed for %s: %s", reminder.key, e)
        return reminder

    async def start(self) -> None:
        """
        Start the polling timer.

        No-op if the timer is already running, so at most one timer is live.
        """
        if self.is_running:
            logger.info("Reminder scheduler already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "Reminder scheduler started (poll every %.1fs)",
            self.config.poll_interval_seconds,
        )

    async def stop(self) -> None:
        """
        Tear down the polling timer.

        Safe to call more than once; only the first call has an effect.
        """
        task = self._task
        if task is None:
            return
        self._task = None
        self._stop_event.set()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(
            "Reminder scheduler stopped after %d ticks (%d reminders)",
            self._tick_count,
            self._fired_count,
        )

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_tick()
            except Exception as e:
                logger.error("Reminder tick failed: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.config.poll_interval_seconds,
                )
            except asyncio.TimeoutError:
                pass
