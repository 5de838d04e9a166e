"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock, AsyncMock, MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("EVENT_TIMEZONE", "Europe/Rome")
os.environ.setdefault("LOG_FORMAT", "text")

from openhouse.models.agent import AgentRole, AuthUser
from tests.utils.factories import (
    create_agent_data,
    create_booking_data,
    create_client_data,
    create_open_house_data,
    create_time_slot_data,
)


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder chains back to itself."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "order", "limit", "update", "upsert", "insert", "delete"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client.query = query
    return client


@pytest.fixture
def patch_supabase(mock_supabase_client, monkeypatch):
    """Route every storage helper to ``mock_supabase_client``."""
    from openhouse.services import supabase_client as module

    monkeypatch.setattr(module, "get_supabase_client", lambda: mock_supabase_client)
    return mock_supabase_client


@pytest.fixture
def agent_row():
    return create_agent_data()


@pytest.fixture
def agent_user(agent_row):
    """Acting agent that owns ``open_house_row``."""
    return AuthUser(
        id=agent_row["id"],
        email=agent_row["email"],
        role=AgentRole.AGENT,
        first_name=agent_row["first_name"],
        last_name=agent_row["last_name"],
    )


@pytest.fixture
def other_agent_user():
    other = create_agent_data()
    return AuthUser(id=other["id"], email=other["email"], role=AgentRole.AGENT)


@pytest.fixture
def admin_user():
    admin = create_agent_data(role="admin")
    return AuthUser(id=admin["id"], email=admin["email"], role=AgentRole.ADMIN)


@pytest.fixture
def open_house_row(agent_row):
    return create_open_house_data(agent_id=agent_row["id"])


@pytest.fixture
def time_slot_row(open_house_row):
    return create_time_slot_data(open_house_id=open_house_row["id"])


@pytest.fixture
def client_row():
    return create_client_data()


@pytest.fixture
def booking_row(open_house_row, time_slot_row, client_row):
    return create_booking_data(
        open_house_id=open_house_row["id"],
        time_slot_id=time_slot_row["id"],
        client_id=client_row["id"],
        agent_id=open_house_row["agent_id"],
    )


@pytest.fixture
def booking_payload(open_house_row, time_slot_row):
    """Public booking form submission, as the frontend sends it."""
    return {
        "eventId": open_house_row["id"],
        "slotId": time_slot_row["id"],
        "client": {
            "nome": "Giulia",
            "cognome": "Bianchi",
            "email": "giulia.bianchi@example.com",
            "telefono": "+39 333 1234567",
            "messaggio": "Vorrei vedere anche la cantina",
        },
        "privacyAccepted": True,
        "marketingAccepted": False,
    }


@pytest.fixture
def mock_notifier():
    """Stand-in for NotificationDispatcher's scheduling surface."""
    notifier = Mock()
    notifier.schedule = Mock()
    notifier.schedule_calendar_release = Mock()
    notifier.notify = AsyncMock()
    return notifier


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2026-03-14 10:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture(scope="function")
def reset_environment(monkeypatch):
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
