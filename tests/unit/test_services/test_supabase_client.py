"""Tests for the Supabase storage helpers."""

import pytest
from unittest.mock import MagicMock, patch

from openhouse.services import supabase_client
from openhouse.services.supabase_client import (
    close_supabase_client,
    get_auth_user,
    get_booking,
    get_supabase_client,
    list_bookings,
    replace_time_slots,
    reserve_seat,
    transition_booking,
    update_booking,
    upsert_client,
)
from openhouse.utils.errors import SupabaseError
from tests.utils.helpers import supabase_result


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_booking_returns_first_row(patch_supabase):
    """Test single-row lookups."""
    patch_supabase.query.execute.return_value = supabase_result([{"id": "b-1"}])

    assert await get_booking("b-1") == {"id": "b-1"}
    patch_supabase.table.assert_called_with("bookings")
    patch_supabase.query.eq.assert_called_with("id", "b-1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_booking_missing(patch_supabase):
    """Test lookups with no rows return None."""
    assert await get_booking("missing") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_storage_errors_are_wrapped(patch_supabase):
    """Test client exceptions become SupabaseError."""
    patch_supabase.query.execute.side_effect = RuntimeError("connection reset")

    with pytest.raises(SupabaseError) as exc_info:
        await get_booking("b-1")

    assert "connection reset" in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upsert_client_on_email(patch_supabase):
    """Test clients are upserted on the email key."""
    patch_supabase.query.execute.return_value = supabase_result([{"id": "c-1", "email": "a@example.com"}])

    row = await upsert_client({"email": "a@example.com"})

    assert row["id"] == "c-1"
    patch_supabase.query.upsert.assert_called_once_with({"email": "a@example.com"}, on_conflict="email")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reserve_seat_calls_procedure(patch_supabase):
    """Test the seat reservation goes through the admit_booking procedure."""
    rpc_query = MagicMock()
    rpc_query.execute.return_value = supabase_result({"outcome": "full", "occupied": 2, "capacity": 2})
    patch_supabase.rpc.return_value = rpc_query

    result = await reserve_seat("evt-1", "slot-1", "c-1", "note")

    assert result["outcome"] == "full"
    name, params = patch_supabase.rpc.call_args[0]
    assert name == "admit_booking"
    assert params == {
        "p_open_house_id": "evt-1",
        "p_time_slot_id": "slot-1",
        "p_client_id": "c-1",
        "p_client_note": "note",
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_replace_time_slots_without_data(patch_supabase):
    """Test an empty procedure response is a storage error."""
    rpc_query = MagicMock()
    rpc_query.execute.return_value = supabase_result(None)
    patch_supabase.rpc.return_value = rpc_query

    with pytest.raises(SupabaseError):
        await replace_time_slots("evt-1", [])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transition_booking_guard(patch_supabase):
    """Test the conditional update filters on the expected status."""
    result = await transition_booking("b-1", {"status": "completed"}, expected_status="confirmed")

    assert result is None
    patch_supabase.query.update.assert_called_once_with({"status": "completed"})
    patch_supabase.query.eq.assert_any_call("id", "b-1")
    patch_supabase.query.eq.assert_any_call("status", "confirmed")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_booking_missing_row(patch_supabase):
    """Test updates that match nothing are errors."""
    with pytest.raises(SupabaseError):
        await update_booking("missing", {"brochure_email_sent": True})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_list_bookings_scope(patch_supabase):
    """Test agent scoping of the listing query."""
    await list_bookings("agent-1")
    patch_supabase.query.eq.assert_called_once_with("agent_id", "agent-1")

    patch_supabase.query.eq.reset_mock()
    await list_bookings(None)
    patch_supabase.query.eq.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_auth_user(patch_supabase):
    """Test session resolution through Supabase Auth."""
    user = MagicMock(email="agent@example.com")
    patch_supabase.auth.get_user.return_value = MagicMock(user=user)
    assert await get_auth_user("token") is user

    patch_supabase.auth.get_user.side_effect = Exception("invalid JWT")
    assert await get_auth_user("bad") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_client_singleton_and_close():
    """Test the client is created once per process and dropped on close."""
    await close_supabase_client()
    created = MagicMock()

    with patch.object(supabase_client, "create_client", return_value=created) as factory:
        assert get_supabase_client() is created
        assert get_supabase_client() is created
        factory.assert_called_once()

        await close_supabase_client()
        assert supabase_client._client is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_client_requires_configuration(monkeypatch):
    """Test missing credentials are a storage error."""
    await close_supabase_client()
    monkeypatch.setattr(supabase_client.AppConfig, "SUPABASE_URL", None)

    with pytest.raises(SupabaseError):
        get_supabase_client()
