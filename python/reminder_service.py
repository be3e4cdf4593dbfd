"""
Interview Reminder Service

Hosts the candidate roster and the session-scoped interview reminder engine,
and exposes them to the HR web client.

Endpoints:
    POST   /session/login                 - Start a user session (starts the reminder timer)
    POST   /session/logout                - End the session (stops the timer, drops reminder state)
    GET    /session/status                - Current session and reminder state
    GET    /candidates                    - List roster candidates
    PUT    /candidates/{id}               - Create or replace a candidate
    DELETE /candidates/{id}               - Permanently delete a candidate
    PUT    /candidates/{id}/interview     - Schedule (or reschedule) an interview
    DELETE /candidates/{id}/interview     - Cancel an interview
    POST   /candidates/{id}/no-show       - Flag or unflag a no-show
    POST   /interviews/bulk-schedule      - Schedule one slot for many candidates
    POST   /interviews/bulk-cancel        - Cancel many interviews
    GET    /interviews                    - Agenda listing (upcoming/past, filters)
    GET    /reminders/active              - Reminder currently presented
    POST   /reminders/active/dismiss      - Dismiss the active reminder
    POST   /reminders/tick                - Run one scheduler tick now
    GET    /reminders/history             - Recent reminder events
    GET    /reminders/stream              - Server-sent reminder events
    GET    /health                        - Health check

Internal binding: configured by SERVICE_HOST/SERVICE_PORT (default 0.0.0.0:8780)
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Annotated, Any, AsyncIterator, Literal, TypedDict

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from interview_reminders import (
    ActiveReminder,
    Candidate,
    CandidateNotFoundError,
    CandidateRoster,
    InterviewRecord,
    ReminderConfig,
    ReminderPublisher,
    ReminderSessionManager,
    load_reminder_config,
    load_seed_roster,
)

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


SERVICE_NAME = "interview-reminder-service"
SERVICE_VERSION = "0.1.0"


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime config for the reminder service."""

    service_host: str
    service_port: int
    seed_roster_path: Path | None


def load_runtime_config() -> RuntimeConfig:
    """Load runtime config from environment with strict validation."""
    service_host = (os.environ.get("SERVICE_HOST", "0.0.0.0") or "").strip()
    if not service_host:
        raise RuntimeError("SERVICE_HOST resolved to empty value.")

    service_port_raw = (os.environ.get("SERVICE_PORT", "8780") or "").strip()
    if not service_port_raw:
        raise RuntimeError("SERVICE_PORT resolved to empty value.")

    try:
        service_port = int(service_port_raw)
    except ValueError as exc:
        raise RuntimeError(f"SERVICE_PORT must be an integer. Got: {service_port_raw}") from exc

    if service_port < 1 or service_port > 65535:
        raise RuntimeError(f"SERVICE_PORT must be in range 1-65535. Got: {service_port}.")

    seed_override = (os.environ.get("SEED_ROSTER_PATH") or "").strip()
    seed_roster_path = Path(seed_override).expanduser() if seed_override else None

    return RuntimeConfig(
        service_host=service_host,
        service_port=service_port,
        seed_roster_path=seed_roster_path,
    )


RUNTIME_CONFIG = load_runtime_config()

# CORS configuration - modify for production
CORS_ORIGINS: list[str] = [
    "http://localhost:3000",  # Common React dev port
    "http://localhost:5173",  # Vite dev server
]


# =============================================================================
# Request Models
# =============================================================================


class LoginRequest(BaseModel):
    """Request to start a user session."""

    username: str = Field(..., min_length=1, description="User that receives reminders")


class BulkScheduleRequest(BaseModel):
    """Schedule the same interview slot for several candidates."""

    candidate_ids: list[int] = Field(..., min_length=1)
    interview: InterviewRecord


class BulkCancelRequest(BaseModel):
    """Cancel interviews for several candidates."""

    candidate_ids: list[int] = Field(..., min_length=1)


class NoShowRequest(BaseModel):
    """Flag or unflag a no-show."""

    no_show: bool = Field(default=True)


class TickRequest(BaseModel):
    """Run one tick, optionally at an explicit local instant."""

    now: datetime | None = Field(
        default=None,
        description="Naive local instant to evaluate at; defaults to the current time",
    )


# =============================================================================
# Response Models
# =============================================================================


class BaseResponse(BaseModel):
    """Base response model with common fields."""

    ok: bool = Field(..., description="Whether the operation succeeded")
    message: str | None = Field(default=None, description="Optional status message")


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = Field(default=False)
    error: str = Field(..., description="Error description")
    error_code: str | None = Field(default=None, description="Machine-readable error code")


class LoginResponse(BaseResponse):
    """Response for session login."""

    session_id: str = Field(..., description="Unique session identifier")
    started_at: str = Field(..., description="Session start timestamp")


class LogoutResponse(BaseResponse):
    """Response for session logout."""

    session_id: str | None = Field(default=None, description="Ended session identifier")


class CandidateResponse(BaseResponse):
    """Response carrying one candidate."""

    candidate: Candidate


class CandidateListResponse(BaseModel):
    """Response carrying several candidates."""

    candidates: list[Candidate]
    count: int


class ReminderResponse(BaseModel):
    """Response carrying the active (or just fired/dismissed) reminder."""

    reminder: ActiveReminder | None = None
    message: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: str = Field(..., description="Current server timestamp")
    session_active: bool = Field(..., description="Whether a session is active")
    candidates: int = Field(..., description="Candidates in the roster")


# =============================================================================
# Application State (Type-safe Lifespan State)
# =============================================================================


class AppState(TypedDict):
    """Type-safe application state managed by lifespan."""

    roster: CandidateRoster
    publisher: ReminderPublisher
    session_manager: ReminderSessionManager
    reminder_config: ReminderConfig


# =============================================================================
# Custom Exceptions
# =============================================================================


class ReminderServiceError(Exception):
    """Base exception for reminder service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class SessionNotActiveError(ReminderServiceError):
    """Raised when operation requires an active session."""

    def __init__(self, message: str = "No active session. Log in first.") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="SESSION_NOT_ACTIVE",
        )


class SessionAlreadyActiveError(ReminderServiceError):
    """Raised when logging in while another session is active."""

    def __init__(self, message: str = "Session already active. Log out first.") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="SESSION_ALREADY_ACTIVE",
        )


class NoActiveReminderError(ReminderServiceError):
    """Raised when dismissing while no reminder is shown."""

    def __init__(self, message: str = "No reminder is currently active.") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NO_ACTIVE_REMINDER",
        )


class InterviewNotScheduledError(ReminderServiceError):
    """Raised when an interview operation targets a candidate without one."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="INTERVIEW_NOT_SCHEDULED",
        )


# =============================================================================
# Dependencies
# =============================================================================


def get_app_state(request: Request) -> AppState:
    """
    Dependency to retrieve application state from request.

    Args:
        request: The incoming request object.

    Returns:
        AppState dictionary from lifespan context.

    Raises:
        RuntimeError: If state is not properly initialized.
    """
    state = getattr(request, "state", None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return AppState(
        roster=state.roster,
        publisher=state.publisher,
        session_manager=state.session_manager,
        reminder_config=state.reminder_config,
    )


# Type alias for dependency injection
AppStateDep = Annotated[AppState, Depends(get_app_state)]


def require_active_session(state: AppState) -> ReminderSessionManager:
    """Return the session manager, raising if nobody is logged in."""
    session_manager = state["session_manager"]
    if not session_manager.is_active:
        raise SessionNotActiveError()
    return session_manager


# =============================================================================
# Exception Handlers
# =============================================================================


async def reminder_service_error_handler(
    request: Request, exc: ReminderServiceError
) -> JSONResponse:
    """
    Handle custom service exceptions.

    Args:
        request: The incoming request.
        exc: The exception that was raised.

    Returns:
        JSONResponse with error details.
    """
    logger.warning("Service error: %s (code=%s)", exc.message, exc.error_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            ok=False,
            error=exc.message,
            error_code=exc.error_code,
        ).model_dump(),
    )


async def candidate_not_found_handler(
    request: Request, exc: CandidateNotFoundError
) -> JSONResponse:
    """Map unknown candidate ids to 404."""
    logger.warning("Candidate not found: %d", exc.candidate_id)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(
            ok=False,
            error=str(exc),
            error_code="CANDIDATE_NOT_FOUND",
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: The incoming request.
        exc: The exception that was raised.

    Returns:
        JSONResponse with generic error message.
    """
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            ok=False,
            error="Internal server error",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )


# =============================================================================
# FastAPI App Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[dict[str, Any]]:
    """
    Manage application lifespan with type-safe state.

    Builds the roster and the session manager on startup; on shutdown ends
    any active session so the reminder timer never outlives the service.

    Args:
        app: The FastAPI application instance.

    Yields:
        Dictionary of application state to be attached to requests.
    """
    logger.info("Starting %s v%s", SERVICE_NAME, SERVICE_VERSION)

    reminder_config = load_reminder_config()
    logger.info(
        "Reminder config: poll=%.1fs now_window=%.0fs horizon=%dmin bucket=%dmin",
        reminder_config.poll_interval_seconds,
        reminder_config.now_window_seconds,
        reminder_config.horizon_minutes,
        reminder_config.bucket_minutes,
    )

    roster = CandidateRoster()
    if RUNTIME_CONFIG.seed_roster_path is not None:
        for candidate in load_seed_roster(RUNTIME_CONFIG.seed_roster_path):
            roster.upsert(candidate)
        logger.info(
            "Seeded roster with %d candidates from %s",
            len(roster),
            RUNTIME_CONFIG.seed_roster_path,
        )

    publisher = ReminderPublisher()
    session_manager = ReminderSessionManager(
        roster.snapshot,
        reminder_config,
        publisher=publisher,
    )

    state = {
        "roster": roster,
        "publisher": publisher,
        "session_manager": session_manager,
        "reminder_config": reminder_config,
    }

    yield state

    # Shutdown
    logger.info("Shutting down...")
    await session_manager.end_session()


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Interview Reminder Service",
    version=SERVICE_VERSION,
    description="Candidate interview roster with session-scoped interview reminders",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(ReminderServiceError, reminder_service_error_handler)
app.add_exception_handler(CandidateNotFoundError, candidate_not_found_handler)
app.add_exception_handler(Exception, generic_exception_handler)


# =============================================================================
# Session Endpoints
# =============================================================================


@app.post("/session/login", response_model=LoginResponse)
async def login(request: LoginRequest, state: AppStateDep) -> LoginResponse:
    """
    Start a user session and its reminder timer.

    Raises:
        SessionAlreadyActiveError: If another user is logged in.
    """
    session_manager = state["session_manager"]
    if session_manager.is_active:
        raise SessionAlreadyActiveError()

    session = await session_manager.start_session(request.username)
    return LoginResponse(
        ok=True,
        message=f"Session started for {session.username}",
        session_id=session.session_id,
        started_at=session.started_at,
    )


@app.post("/session/logout", response_model=LogoutResponse)
async def logout(state: AppStateDep) -> LogoutResponse:
    """
    End the session, stopping the reminder timer.

    Logging out without a session is a no-op.
    """
    ended = await state["session_manager"].end_session()
    if ended is None:
        return LogoutResponse(ok=True, message="No active session")
    return LogoutResponse(
        ok=True,
        message=f"Session ended for {ended.username}",
        session_id=ended.session_id,
    )


@app.get("/session/status")
async def session_status(state: AppStateDep) -> dict[str, Any]:
    """Get the current session and reminder state."""
    return state["session_manager"].get_status()


# =============================================================================
# Candidate Endpoints
# =============================================================================


@app.get("/candidates", response_model=CandidateListResponse)
async def list_candidates(state: AppStateDep) -> CandidateListResponse:
    """List every candidate in the roster."""
    candidates = list(state["roster"].snapshot())
    return CandidateListResponse(candidates=candidates, count=len(candidates))


@app.put("/candidates/{candidate_id}", response_model=CandidateResponse)
async def upsert_candidate(
    candidate_id: int, candidate: Candidate, state: AppStateDep
) -> CandidateResponse:
    """Create or replace a candidate. The path id wins over the body id."""
    stored = state["roster"].upsert(candidate.model_copy(update={"id": candidate_id}))
    return CandidateResponse(ok=True, candidate=stored)


@app.delete("/candidates/{candidate_id}", response_model=CandidateResponse)
async def delete_candidate(candidate_id: int, state: AppStateDep) -> CandidateResponse:
    """Permanently delete a candidate."""
    removed = state["roster"].remove(candidate_id)
    return CandidateResponse(ok=True, message="Candidate deleted", candidate=removed)


@app.put("/candidates/{candidate_id}/interview", response_model=CandidateResponse)
async def schedule_interview(
    candidate_id: int, interview: InterviewRecord, state: AppStateDep
) -> CandidateResponse:
    """Schedule or reschedule a candidate's interview."""
    updated = state["roster"].schedule_interview(candidate_id, interview)
    return CandidateResponse(ok=True, message="Interview scheduled", candidate=updated)


@app.delete("/candidates/{candidate_id}/interview", response_model=CandidateResponse)
async def cancel_interview(candidate_id: int, state: AppStateDep) -> CandidateResponse:
    """Cancel a candidate's interview."""
    updated = state["roster"].cancel_interview(candidate_id)
    return CandidateResponse(ok=True, message="Interview cancelled", candidate=updated)


@app.post("/candidates/{candidate_id}/no-show", response_model=CandidateResponse)
async def mark_no_show(
    candidate_id: int, request: NoShowRequest, state: AppStateDep
) -> CandidateResponse:
    """Flag or unflag a candidate as a no-show."""
    try:
        updated = state["roster"].mark_no_show(candidate_id, request.no_show)
    except ValueError as exc:
        raise InterviewNotScheduledError(str(exc)) from exc
    return CandidateResponse(ok=True, candidate=updated)


# =============================================================================
# Interview Endpoints
# =============================================================================


@app.post("/interviews/bulk-schedule", response_model=CandidateListResponse)
async def bulk_schedule(request: BulkScheduleRequest, state: AppStateDep) -> CandidateListResponse:
    """Schedule one interview slot for several candidates."""
    scheduled = state["roster"].bulk_schedule(request.candidate_ids, request.interview)
    return CandidateListResponse(candidates=scheduled, count=len(scheduled))


@app.post("/interviews/bulk-cancel", response_model=CandidateListResponse)
async def bulk_cancel(request: BulkCancelRequest, state: AppStateDep) -> CandidateListResponse:
    """Cancel interviews for several candidates."""
    cancelled = state["roster"].bulk_cancel(request.candidate_ids)
    return CandidateListResponse(candidates=cancelled, count=len(cancelled))


@app.get("/interviews", response_model=CandidateListResponse)
async def list_interviews(
    state: AppStateDep,
    mode: Literal["upcoming", "past"] = "upcoming",
    job_id: str | None = None,
    interviewer: str | None = None,
    today: date | None = None,
) -> CandidateListResponse:
    """Agenda listing of scheduled interviews."""
    candidates = state["roster"].list_interviews(
        mode=mode,
        job_id=job_id,
        interviewer=interviewer,
        today=today,
    )
    return CandidateListResponse(candidates=candidates, count=len(candidates))


# =============================================================================
# Reminder Endpoints
# =============================================================================


@app.get("/reminders/active", response_model=ReminderResponse)
async def active_reminder(state: AppStateDep) -> ReminderResponse:
    """Get the reminder currently presented to the user, if any."""
    session_manager = require_active_session(state)
    return ReminderResponse(reminder=session_manager.active_reminder)


@app.post("/reminders/active/dismiss", response_model=ReminderResponse)
async def dismiss_reminder(state: AppStateDep) -> ReminderResponse:
    """
    Dismiss the active reminder, freeing the slot for the next one.

    Raises:
        NoActiveReminderError: If nothing is shown.
    """
    session_manager = require_active_session(state)
    dismissed = await session_manager.dismiss_active()
    if dismissed is None:
        raise NoActiveReminderError()
    return ReminderResponse(reminder=dismissed, message="Reminder dismissed")


@app.post("/reminders/tick", response_model=ReminderResponse)
async def run_tick(request: TickRequest, state: AppStateDep) -> ReminderResponse:
    """Run one scheduler tick now, outside the timer cadence."""
    session_manager = require_active_session(state)
    now = request.now.replace(tzinfo=None) if request.now else None
    reminder = await session_manager.run_tick(now)
    return ReminderResponse(
        reminder=reminder,
        message="Reminder fired" if reminder else "No reminder due",
    )


@app.get("/reminders/history")
async def reminder_history(state: AppStateDep) -> dict[str, Any]:
    """Recent reminder events, oldest first."""
    history = await state["publisher"].get_history()
    return {"events": [event.to_dict() for event in history], "count": len(history)}


@app.get("/reminders/stream")
async def reminder_stream(state: AppStateDep) -> StreamingResponse:
    """Stream reminder events as server-sent events."""
    publisher = state["publisher"]
    queue = await publisher.subscribe()

    async def event_source() -> AsyncIterator[str]:
        try:
            while True:
                event = await queue.get()
                yield f"event: {event.event_type.value}\ndata: {event.to_json()}\n\n"
        finally:
            await publisher.unsubscribe(queue)

    return StreamingResponse(event_source(), media_type="text/event-stream")


# =============================================================================
# Health Endpoint
# =============================================================================


@app.get("/health", response_model=HealthResponse)
async def health(state: AppStateDep) -> HealthResponse:
    """Service health check."""
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        session_active=state["session_manager"].is_active,
        candidates=len(state["roster"]),
    )


# =============================================================================
# Main Entry Point
# =============================================================================


if __name__ == "__main__":
    logger.info("=" * 60)
    logger.info("Interview Reminder Service v%s", SERVICE_VERSION)
    logger.info("=" * 60)
    logger.info(
        "Binding to: http://%s:%d",
        RUNTIME_CONFIG.service_host,
        RUNTIME_CONFIG.service_port,
    )
    logger.info("Seed roster: %s", RUNTIME_CONFIG.seed_roster_path or "none")
    logger.info("=" * 60)

    uvicorn.run(
        app,
        host=RUNTIME_CONFIG.service_host,
        port=RUNTIME_CONFIG.service_port,
        log_level="info",
    )
