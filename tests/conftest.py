"""Pytest fixtures and sample data for Teamup link updater tests."""

from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from teamup_linker.config import Settings
from teamup_linker.service import LinkUpdater

# ============================================================================
# Sample Teamup Data
# ============================================================================

TEAM_A = 14156325
TEAM_B = 14098383
UNMANAGED = 99

SAMPLE_LINKS = {
    str(TEAM_A): 'Zoom Link for Team A: <a href="https://zoom.us/j/123456789">join</a>',
    str(TEAM_B): "Zoom Link for Team B: https://zoom.us/j/987654321",
}


def get_sample_event(
    event_id: str = "500",
    subcalendar_id: Any = TEAM_A,
    subcalendar_ids: list[Any] | None = None,
    start_dt: str = "2023-11-14T17:00:00-05:00",
    end_dt: str = "2023-11-14T18:00:00-05:00",
    title: str = "Weekly Sync",
    custom: Any = None,
    **extra: Any,
) -> dict[str, Any]:
    """Generate a Teamup event fragment with customizable properties."""
    event: dict[str, Any] = {
        "id": event_id,
        "series_id": None,
        "remote_id": None,
        "subcalendar_id": subcalendar_id,
        "subcalendar_ids": subcalendar_ids if subcalendar_ids is not None else [subcalendar_id],
        "all_day": False,
        "rrule": "",
        "title": title,
        "who": "Alice, Bob",
        "location": "Room 4",
        "notes": "<p>Agenda</p>",
        "version": "5f2c1a",
        "readonly": False,
        "tz": "America/New_York",
        "start_dt": start_dt,
        "end_dt": end_dt,
        "custom": custom if custom is not None else {"agenda_owner": "Alice"},
    }
    if subcalendar_id is None:
        del event["subcalendar_id"]
    event.update(extra)
    return event


def get_recurring_instance(
    series_id: int = 500,
    epoch: int = 1700000000,
    **extra: Any,
) -> dict[str, Any]:
    """Generate a fragment for one occurrence of a recurring event."""
    fields: dict[str, Any] = {
        "rrule": "FREQ=WEEKLY;BYDAY=TU",
        "series_id": series_id,
    }
    fields.update(extra)
    return get_sample_event(event_id=f"{series_id}-rid-{epoch}", **fields)


def dispatch_body(event: dict[str, Any], trigger: str = "event.created") -> dict[str, Any]:
    """Wrap an event the way current Teamup webhooks do (shape A)."""
    return {
        "id": "wh_1",
        "calendar": "ks123",
        "dispatch": [{"trigger": trigger, "event": event}],
    }


def action_body(event: dict[str, Any], action: str = "event.update") -> dict[str, Any]:
    """Wrap an event the way legacy Teamup webhooks do (shape B)."""
    return {"action": action, "event": event}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Settings with credentials and two managed sub-calendars."""
    return Settings(
        api_key="test-api-key",
        calendar_id="ks123",
        api_url="https://api.teamup.test",
        link_field="zoom_link",
        subcalendar_links=SAMPLE_LINKS,
    )


@pytest.fixture
def mock_teamup_client():
    """Mock TeamupClient whose writes succeed by default."""
    mock_client = AsyncMock()
    mock_client.update_event.return_value = {"event": {"id": "500"}}
    mock_client.patch_event.return_value = {"event": {"id": "500"}}
    return mock_client


@pytest.fixture
def updater(settings, mock_teamup_client):
    """LinkUpdater wired to the mock client."""
    return LinkUpdater(settings, mock_teamup_client)


@pytest.fixture
def client(updater):
    """FastAPI test client with the updater dependency mocked."""
    from teamup_linker.server import app

    with patch("teamup_linker.server.get_link_updater", return_value=updater):
        yield TestClient(app)


@pytest.fixture
def sample_event():
    """Return a basic non-recurring event fragment."""
    return get_sample_event()
