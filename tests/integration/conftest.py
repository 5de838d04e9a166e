"""Fixtures for tests that run the SQL migration against a real Postgres."""

import os
import uuid
from pathlib import Path

import psycopg2
import pytest

from tests.utils.database import dict_cursor, insert

MIGRATION = Path(__file__).resolve().parents[2] / "supabase" / "migrations" / "0001_open_house_booking.sql"


@pytest.fixture(scope="session")
def database_url():
    """
    Postgres to run against.

    ``TEST_DATABASE_URL`` when set, otherwise a throwaway container started
    through testcontainers. Skips when neither is available.
    """
    url = os.environ.get("TEST_DATABASE_URL")
    if url:
        yield url
        return

    postgres = pytest.importorskip("testcontainers.postgres")
    container = postgres.PostgresContainer("postgres:16-alpine", driver=None)
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"No TEST_DATABASE_URL and no Docker for a Postgres container: {e}")
    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest.fixture
def db(database_url):
    """
    Fresh schema with the migration applied.

    Yields a ``connect()`` factory; each call opens a new session (own
    transaction, own locks) on that schema.
    """
    schema = f"openhouse_test_{uuid.uuid4().hex[:10]}"
    opened = []

    def connect(autocommit: bool = True):
        conn = psycopg2.connect(database_url, options=f"-c search_path={schema},public")
        conn.autocommit = autocommit
        opened.append(conn)
        return conn

    admin = psycopg2.connect(database_url)
    admin.autocommit = True
    with admin.cursor() as cur:
        cur.execute(f"create schema {schema}")

    setup = connect()
    with setup.cursor() as cur:
        cur.execute(MIGRATION.read_text())

    try:
        yield connect
    finally:
        for conn in opened:
            conn.close()
        with admin.cursor() as cur:
            cur.execute(f"drop schema {schema} cascade")
        admin.close()



@pytest.fixture
def seed(db):
    """Factory for an agent's published event with one slot of the given capacity."""
    conn = db()

    def make(capacity: int = 1, is_active: bool = True) -> dict:
        with dict_cursor(conn) as cur:
            suffix = uuid.uuid4().hex[:8]
            agent_id = insert(cur, "agents", email=f"agente.{suffix}@example.com",
                              first_name="Laura", last_name="Ferri")
            property_id = insert(cur, "properties", agent_id=agent_id, title="Trilocale Brera")
            event_id = insert(
                cur, "open_houses",
                property_id=property_id,
                agent_id=agent_id,
                event_date="2026-03-21",
                start_time="09:00",
                end_time="10:00",
                slot_duration_minutes=20,
                max_participants_per_slot=capacity,
                is_active=is_active,
            )
            slot_id = insert(cur, "time_slots", open_house_id=event_id, start_time="09:00",
                             end_time="09:20", max_participants=capacity)
        return {"agent_id": agent_id, "event_id": event_id, "slot_id": slot_id}

    return make


@pytest.fixture
def new_client(db):
    conn = db()

    def make() -> str:
        with dict_cursor(conn) as cur:
            suffix = uuid.uuid4().hex[:8]
            return insert(cur, "clients", email=f"cliente.{suffix}@example.com",
                          first_name="Marco", last_name="Galli", gdpr_consent=True)

    return make
