"""
FastAPI endpoint tests for the Interview Reminder Service.

Tests the API endpoints using httpx AsyncClient with proper lifespan
management via asgi-lifespan. The demo roster is dated in 2099, so the
real-clock reminder timer never fires during a test; reminders are driven
through POST /reminders/tick with an explicit instant.

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from tests.mock_data import (
    BASE_TIME,
    generate_candidate_dict,
    generate_interview_dict,
    minutes,
)


TEST_SEED_ROSTER_PATH = (
    Path(__file__).resolve().parent.parent
    / "interview_reminders"
    / "seeds"
    / "demo_roster.json"
)
os.environ.setdefault("SEED_ROSTER_PATH", str(TEST_SEED_ROSTER_PATH))
os.environ.setdefault("REMINDER_POLL_INTERVAL_SECONDS", "3600")

# Demo roster: 101 at 09:30 and 102 at 10:15 on 2099-03-14
DEMO_DAY = "2099-03-14"


def at(clock: str) -> dict[str, str]:
    """Tick request body for a local time on the demo day."""
    return {"now": f"{DEMO_DAY}T{clock}"}


# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """
    Create async test client with proper lifespan management.

    Each client runs a fresh lifespan, so every test starts from the seeded
    roster with nobody logged in.
    """
    from reminder_service import app

    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


@pytest_asyncio.fixture(autouse=True)
async def reset_state(client: AsyncClient) -> AsyncIterator[None]:
    """Log out after each test so no reminder timer outlives it."""
    yield
    await client.post("/session/logout")


async def login(client: AsyncClient, username: str = "ana") -> dict:
    response = await client.post("/session/login", json={"username": username})
    assert response.status_code == 200
    return response.json()


# =============================================================================
# Health Endpoint Tests
# =============================================================================


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_ok(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "interview-reminder-service"
        assert data["candidates"] == 4
        assert data["session_active"] is False

    @pytest.mark.asyncio
    async def test_health_shows_session(self, client: AsyncClient) -> None:
        await login(client)

        response = await client.get("/health")

        assert response.json()["session_active"] is True


# =============================================================================
# Session Endpoint Tests
# =============================================================================


class TestSessionEndpoints:
    """Tests for /session endpoints."""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient) -> None:
        data = await login(client)

        assert data["ok"] is True
        assert data["session_id"].startswith("rem_")
        assert data["started_at"].endswith("Z")

    @pytest.mark.asyncio
    async def test_login_while_active(self, client: AsyncClient) -> None:
        await login(client)

        response = await client.post("/session/login", json={"username": "bruno"})

        assert response.status_code == 409
        data = response.json()
        assert data["ok"] is False
        assert data["error_code"] == "SESSION_ALREADY_ACTIVE"

    @pytest.mark.asyncio
    async def test_login_requires_username(self, client: AsyncClient) -> None:
        response = await client.post("/session/login", json={"username": ""})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient) -> None:
        session = await login(client)

        response = await client.post("/session/logout")

        assert response.status_code == 200
        assert response.json()["session_id"] == session["session_id"]
        status = (await client.get("/session/status")).json()
        assert status["session_active"] is False
        assert status["scheduler_running"] is False

    @pytest.mark.asyncio
    async def test_logout_without_session(self, client: AsyncClient) -> None:
        response = await client.post("/session/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "No active session"

    @pytest.mark.asyncio
    async def test_status_while_active(self, client: AsyncClient) -> None:
        await login(client)

        data = (await client.get("/session/status")).json()

        assert data["session_active"] is True
        assert data["username"] == "ana"
        assert data["scheduler_running"] is True
        assert data["fired_keys"] == []


# =============================================================================
# Candidate and Interview Endpoint Tests
# =============================================================================


class TestCandidateEndpoints:
    """Tests for /candidates endpoints."""

    @pytest.mark.asyncio
    async def test_list_candidates(self, client: AsyncClient) -> None:
        data = (await client.get("/candidates")).json()

        assert data["count"] == 4
        assert [c["id"] for c in data["candidates"]] == [101, 102, 103, 104]

    @pytest.mark.asyncio
    async def test_upsert_candidate_uses_path_id(self, client: AsyncClient) -> None:
        body = generate_candidate_dict(1, BASE_TIME)

        response = await client.put("/candidates/200", json=body)

        assert response.status_code == 200
        assert response.json()["candidate"]["id"] == 200
        assert (await client.get("/health")).json()["candidates"] == 5

    @pytest.mark.asyncio
    async def test_delete_candidate(self, client: AsyncClient) -> None:
        response = await client.delete("/candidates/103")

        assert response.status_code == 200
        assert (await client.get("/candidates")).json()["count"] == 3

    @pytest.mark.asyncio
    async def test_unknown_candidate_is_404(self, client: AsyncClient) -> None:
        response = await client.delete("/candidates/999")

        assert response.status_code == 404
        assert response.json()["error_code"] == "CANDIDATE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_schedule_interview(self, client: AsyncClient) -> None:
        body = generate_interview_dict(BASE_TIME + minutes(60))

        response = await client.put("/candidates/103/interview", json=body)

        assert response.status_code == 200
        candidate = response.json()["candidate"]
        assert candidate["status"] == "approved"
        assert candidate["interview"]["time"] == "11:00:00"

    @pytest.mark.asyncio
    async def test_cancel_interview(self, client: AsyncClient) -> None:
        response = await client.delete("/candidates/101/interview")

        assert response.status_code == 200
        assert response.json()["candidate"]["interview"] is None

    @pytest.mark.asyncio
    async def test_no_show(self, client: AsyncClient) -> None:
        response = await client.post("/candidates/101/no-show", json={"no_show": True})

        assert response.status_code == 200
        assert response.json()["candidate"]["interview"]["no_show"] is True

    @pytest.mark.asyncio
    async def test_no_show_without_interview(self, client: AsyncClient) -> None:
        response = await client.post("/candidates/103/no-show", json={})

        assert response.status_code == 409
        assert response.json()["error_code"] == "INTERVIEW_NOT_SCHEDULED"


class TestInterviewEndpoints:
    """Tests for /interviews endpoints."""

    @pytest.mark.asyncio
    async def test_agenda_upcoming(self, client: AsyncClient) -> None:
        response = await client.get("/interviews", params={"today": DEMO_DAY})

        assert [c["id"] for c in response.json()["candidates"]] == [101, 102, 104]

    @pytest.mark.asyncio
    async def test_agenda_past(self, client: AsyncClient) -> None:
        response = await client.get(
            "/interviews", params={"mode": "past", "today": "2099-03-16"}
        )

        assert [c["id"] for c in response.json()["candidates"]] == [104, 102, 101]

    @pytest.mark.asyncio
    async def test_agenda_filters(self, client: AsyncClient) -> None:
        by_interviewer = await client.get(
            "/interviews", params={"today": DEMO_DAY, "interviewer": "diego"}
        )
        by_job = await client.get(
            "/interviews", params={"today": DEMO_DAY, "job_id": "job-gerente"}
        )

        assert [c["id"] for c in by_interviewer.json()["candidates"]] == [101, 102]
        assert [c["id"] for c in by_job.json()["candidates"]] == [104]

    @pytest.mark.asyncio
    async def test_agenda_invalid_mode(self, client: AsyncClient) -> None:
        response = await client.get("/interviews", params={"mode": "someday"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_bulk_schedule(self, client: AsyncClient) -> None:
        body = {
            "candidate_ids": [103, 999],
            "interview": generate_interview_dict(BASE_TIME, notes="shared"),
        }

        data = (await client.post("/interviews/bulk-schedule", json=body)).json()

        assert data["count"] == 1
        assert data["candidates"][0]["interview"]["notes"] == ""

    @pytest.mark.asyncio
    async def test_bulk_cancel(self, client: AsyncClient) -> None:
        response = await client.post(
            "/interviews/bulk-cancel", json={"candidate_ids": [101, 102]}
        )

        assert response.json()["count"] == 2
        agenda = await client.get("/interviews", params={"today": DEMO_DAY})
        assert [c["id"] for c in agenda.json()["candidates"]] == [104]


# =============================================================================
# Reminder Endpoint Tests
# =============================================================================


class TestReminderEndpoints:
    """Tests for /reminders endpoints."""

    @pytest.mark.asyncio
    async def test_reminders_require_session(self, client: AsyncClient) -> None:
        active = await client.get("/reminders/active")
        tick = await client.post("/reminders/tick", json=at("09:02:00"))

        assert active.status_code == 400
        assert active.json()["error_code"] == "SESSION_NOT_ACTIVE"
        assert tick.status_code == 400

    @pytest.mark.asyncio
    async def test_tick_fires_upcoming(self, client: AsyncClient) -> None:
        await login(client)

        response = await client.post("/reminders/tick", json=at("09:02:00"))

        data = response.json()
        assert data["message"] == "Reminder fired"
        assert data["reminder"]["key"] == "101_30"
        assert data["reminder"]["kind"] == "upcoming"
        assert data["reminder"]["bucket"] == 30
        assert data["reminder"]["fired_at"] == f"{DEMO_DAY}T09:02:00"
        active = (await client.get("/reminders/active")).json()
        assert active["reminder"]["key"] == "101_30"

    @pytest.mark.asyncio
    async def test_tick_nothing_due(self, client: AsyncClient) -> None:
        await login(client)

        data = (await client.post("/reminders/tick", json=at("08:00:00"))).json()

        assert data["reminder"] is None
        assert data["message"] == "No reminder due"

    @pytest.mark.asyncio
    async def test_dismiss(self, client: AsyncClient) -> None:
        await login(client)
        await client.post("/reminders/tick", json=at("09:02:00"))

        dismissed = await client.post("/reminders/active/dismiss")
        again = await client.post("/reminders/active/dismiss")

        assert dismissed.status_code == 200
        assert dismissed.json()["reminder"]["key"] == "101_30"
        assert again.status_code == 404
        assert again.json()["error_code"] == "NO_ACTIVE_REMINDER"

    @pytest.mark.asyncio
    async def test_now_reminder_preempts(self, client: AsyncClient) -> None:
        await login(client)
        await client.post("/reminders/tick", json=at("09:02:00"))

        data = (await client.post("/reminders/tick", json=at("09:30:20"))).json()

        assert data["reminder"]["kind"] == "now"
        assert data["reminder"]["key"] == "101_0"
        status = (await client.get("/session/status")).json()
        assert status["active_reminder"]["key"] == "101_0"
        assert status["fired_keys"] == ["101_0", "101_30"]

    @pytest.mark.asyncio
    async def test_cancelled_interview_keys_purged(self, client: AsyncClient) -> None:
        await login(client)
        await client.post("/reminders/tick", json=at("09:02:00"))

        await client.delete("/candidates/101/interview")
        await client.post("/reminders/tick", json=at("09:03:00"))

        status = (await client.get("/session/status")).json()
        assert "101_30" not in status["fired_keys"]

    @pytest.mark.asyncio
    async def test_no_show_not_reminded(self, client: AsyncClient) -> None:
        await login(client)

        data = (
            await client.post("/reminders/tick", json={"now": "2099-03-15T13:50:00"})
        ).json()

        assert data["reminder"] is None

    @pytest.mark.asyncio
    async def test_offset_interview_time_does_not_break_ticks(
        self, client: AsyncClient
    ) -> None:
        """An interview time with a UTC offset is skipped, not a server error."""
        await client.put(
            "/candidates/103/interview",
            json={"date": DEMO_DAY, "time": "09:10+02:00"},
        )
        await login(client)

        tick = await client.post("/reminders/tick", json=at("09:02:00"))
        agenda = await client.get("/interviews", params={"today": DEMO_DAY})

        assert tick.status_code == 200
        assert tick.json()["reminder"]["key"] == "101_30"
        assert agenda.status_code == 200
        assert [c["id"] for c in agenda.json()["candidates"]] == [101, 102, 104]
        status = (await client.get("/session/status")).json()
        assert status["invalid_candidate_ids"] == [103]

    @pytest.mark.asyncio
    async def test_timezone_suffix_is_ignored(self, client: AsyncClient) -> None:
        """The tick instant is interpreted as local wall-clock time."""
        await login(client)

        data = (
            await client.post("/reminders/tick", json={"now": f"{DEMO_DAY}T09:02:00Z"})
        ).json()

        assert data["reminder"]["key"] == "101_30"

    @pytest.mark.asyncio
    async def test_relogin_starts_with_fresh_state(self, client: AsyncClient) -> None:
        await login(client)
        await client.post("/reminders/tick", json=at("09:02:00"))
        await client.post("/session/logout")

        await login(client)
        data = (await client.post("/reminders/tick", json=at("09:02:30"))).json()

        assert data["reminder"]["key"] == "101_30"

    @pytest.mark.asyncio
    async def test_history(self, client: AsyncClient) -> None:
        await login(client)
        await client.post("/reminders/tick", json=at("09:02:00"))

        data = (await client.get("/reminders/history")).json()

        assert [event["event_type"] for event in data["events"]] == ["system", "fired"]
        assert data["events"][1]["reminder"]["key"] == "101_30"
        assert "Ana Souza" in data["events"][1]["content"]


# =============================================================================
# Integration Flow
# =============================================================================


class TestIntegrationFlow:
    """End-to-end reminder flow across scheduling, ticks and dismissal."""

    @pytest.mark.asyncio
    async def test_schedule_remind_dismiss_logout(self, client: AsyncClient) -> None:
        await client.put(
            "/candidates/103/interview",
            json=generate_interview_dict(BASE_TIME - minutes(45)),
        )
        await login(client)

        # 103 at 09:15 is now the nearest interview
        first = (await client.post("/reminders/tick", json=at("09:02:00"))).json()
        assert first["reminder"]["key"] == "103_15"
        await client.post("/reminders/active/dismiss")

        second = (await client.post("/reminders/tick", json=at("09:05:00"))).json()
        assert second["reminder"]["key"] == "103_10"

        blocked = (await client.post("/reminders/tick", json=at("09:11:00"))).json()
        assert blocked["reminder"] is None

        await client.post("/reminders/active/dismiss")
        now = (await client.post("/reminders/tick", json=at("09:15:30"))).json()
        assert now["reminder"]["key"] == "103_0"

        logout = await client.post("/session/logout")
        assert logout.status_code == 200
        health = (await client.get("/health")).json()
        assert health["session_active"] is False
