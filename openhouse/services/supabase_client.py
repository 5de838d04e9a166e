"""Supabase client wrapper with async context manager support."""

from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from openhouse.utils.config import AppConfig
from openhouse.utils.errors import SupabaseError
import logging

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

BOOKING_CONTEXT_SELECT = (
    "*, clients(*), time_slots(*), "
    "open_houses(*, properties(*), agents(*))"
)
AGENT_BOOKING_SELECT = (
    "*, clients(id, first_name, last_name, email, phone), "
    "time_slots(id, start_time, end_time), "
    "open_houses(id, event_date, start_time, end_time, properties(id, title, zone))"
)


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = AppConfig.SUPABASE_URL
        key = AppConfig.SUPABASE_SERVICE_ROLE_KEY

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


async def close_supabase_client() -> None:
    """Drop the cached Supabase client."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def _first(result) -> Optional[dict]:
    return result.data[0] if result.data and len(result.data) > 0 else None


# Auth and agents
async def get_auth_user(access_token: str):
    """Resolve a session access token with Supabase Auth. None when rejected."""
    async with SupabaseClient() as client:
        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Session token rejected", extra={"error": str(e)})
            return None
        return response.user if response else None


async def get_agent_by_email(email: str) -> Optional[dict]:
    """Get an active agent by login email."""
    async with SupabaseClient() as client:
        try:
            result = client.table("agents").select("*").eq("email", email).eq("is_active", True).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get agent by email: {e}")


# Open houses and time slots
async def get_open_house(open_house_id: str) -> Optional[dict]:
    """Get an open house event by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("open_houses").select("*").eq("id", open_house_id).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get open house: {e}")


async def get_time_slot(slot_id: str) -> Optional[dict]:
    """Get a time slot by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("time_slots").select("*").eq("id", slot_id).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get time slot: {e}")


async def get_time_slots_with_bookings(open_house_id: str) -> list[dict]:
    """Get all slots of an event, each with its booking status rows embedded."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("time_slots")
                .select("*, bookings(id, status, cancellation_reason)")
                .eq("open_house_id", open_house_id)
                .order("start_time")
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get time slots: {e}")


async def get_slot_booking_states(slot_id: str) -> list[dict]:
    """Get status columns of every booking referencing a slot."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("bookings")
                .select("id, status, cancellation_reason")
                .eq("time_slot_id", slot_id)
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get slot bookings: {e}")


async def replace_time_slots(open_house_id: str, slots: list[dict]) -> dict:
    """Delete and re-insert an event's slots in one transaction.

    Returns ``{"outcome": "replaced", "slots": [...]}`` or
    ``{"outcome": "blocked", "bookings": n}`` when bookings still reference
    the current slots.
    """
    async with SupabaseClient() as client:
        try:
            result = client.rpc("replace_time_slots", {
                "p_open_house_id": open_house_id,
                "p_slots": slots,
            }).execute()
            if not result.data:
                raise SupabaseError("replace_time_slots returned no data")
            return result.data
        except SupabaseError:
            raise
        except Exception as e:
            raise SupabaseError(f"Failed to replace time slots: {e}")


# Clients
async def get_client_by_email(email: str) -> Optional[dict]:
    """Get a client by exact email."""
    async with SupabaseClient() as client:
        try:
            result = client.table("clients").select("*").eq("email", email).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get client: {e}")


async def upsert_client(client_data: dict) -> dict:
    """Insert a client or overwrite the row with the same email."""
    async with SupabaseClient() as client:
        try:
            result = client.table("clients").upsert(client_data, on_conflict="email").execute()
            row = _first(result)
            if row is None:
                raise SupabaseError("Failed to upsert client: no data returned")
            return row
        except SupabaseError:
            raise
        except Exception as e:
            raise SupabaseError(f"Failed to upsert client: {e}")


# Bookings
async def reserve_seat(open_house_id: str, time_slot_id: str, client_id: str,
                       client_note: Optional[str] = None) -> dict:
    """Reserve a seat and insert a confirmed booking atomically.

    The stored procedure locks the slot row, recounts seat-consuming bookings
    and inserts only below capacity. Returns a dict with ``outcome`` in
    ``admitted | full | slot_not_found | event_inactive`` plus ``occupied``,
    ``capacity`` and, when admitted, ``booking``.
    """
    async with SupabaseClient() as client:
        try:
            result = client.rpc("admit_booking", {
                "p_open_house_id": open_house_id,
                "p_time_slot_id": time_slot_id,
                "p_client_id": client_id,
                "p_client_note": client_note,
            }).execute()
            if not result.data:
                raise SupabaseError("admit_booking returned no data")
            return result.data
        except SupabaseError:
            raise
        except Exception as e:
            raise SupabaseError(f"Failed to admit booking: {e}")


async def get_booking(booking_id: str) -> Optional[dict]:
    """Get a booking by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("bookings").select("*").eq("id", booking_id).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get booking: {e}")


async def get_booking_context(booking_id: str) -> Optional[dict]:
    """Get a booking with client, slot, event, property and agent embedded."""
    async with SupabaseClient() as client:
        try:
            result = client.table("bookings").select(BOOKING_CONTEXT_SELECT).eq("id", booking_id).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get booking context: {e}")


async def transition_booking(booking_id: str, updates: dict, expected_status: str) -> Optional[dict]:
    """Update a booking only while it still has ``expected_status``.

    Returns the updated row, or None when the guard did not match.
    """
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("bookings")
                .update(updates)
                .eq("id", booking_id)
                .eq("status", expected_status)
                .execute()
            )
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to transition booking: {e}")


async def update_booking(booking_id: str, updates: dict) -> dict:
    """Update booking tracking columns."""
    async with SupabaseClient() as client:
        try:
            result = client.table("bookings").update(updates).eq("id", booking_id).execute()
            row = _first(result)
            if row is None:
                raise SupabaseError(f"Failed to update booking: {booking_id}")
            return row
        except SupabaseError:
            raise
        except Exception as e:
            raise SupabaseError(f"Failed to update booking: {e}")


async def get_latest_pending_questionnaire_booking(client_id: str) -> Optional[dict]:
    """Most recent confirmed booking of a client still waiting for the questionnaire."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("bookings")
                .select("id")
                .eq("client_id", client_id)
                .eq("status", "confirmed")
                .eq("questionnaire_completed", False)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get pending questionnaire booking: {e}")


async def list_bookings(agent_id: Optional[str] = None) -> list[dict]:
    """List bookings with display data embedded; all agents when agent_id is None."""
    async with SupabaseClient() as client:
        try:
            query = client.table("bookings").select(AGENT_BOOKING_SELECT)
            if agent_id is not None:
                query = query.eq("agent_id", agent_id)
            result = query.order("created_at", desc=True).execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to list bookings: {e}")


# Per-agent Google credentials
async def get_agent_credentials(agent_id: str) -> Optional[dict]:
    """Get the stored Google token set of an agent."""
    async with SupabaseClient() as client:
        try:
            result = client.table("agent_google_credentials").select("*").eq("agent_id", agent_id).execute()
            return _first(result)
        except Exception as e:
            raise SupabaseError(f"Failed to get agent credentials: {e}")


async def save_agent_credentials(credentials: dict) -> dict:
    """Insert or replace an agent's Google token set."""
    async with SupabaseClient() as client:
        try:
            result = client.table("agent_google_credentials").upsert(credentials, on_conflict="agent_id").execute()
            row = _first(result)
            if row is None:
                raise SupabaseError("Failed to save agent credentials: no data returned")
            return row
        except SupabaseError:
            raise
        except Exception as e:
            raise SupabaseError(f"Failed to save agent credentials: {e}")
