"""Availability aggregator - per-slot occupancy computed from booking rows."""

from typing import Iterable, Union
from pydantic import ValidationError as PydanticValidationError

from openhouse.models.booking import Booking, BookingStatus, normalize_status
from openhouse.models.open_house import OpenHouseEvent
from openhouse.models.time_slot import SlotAvailability, TimeSlot
from openhouse.services.supabase_client import (
    get_open_house,
    get_slot_booking_states,
    get_time_slot,
    get_time_slots_with_bookings,
)
from openhouse.utils.errors import EventInactiveError, EventNotFoundError, SlotNotFoundError, SupabaseError
from openhouse.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BookingLike = Union[Booking, dict]


def _status_of(booking: BookingLike) -> BookingStatus:
    if isinstance(booking, Booking):
        return booking.status
    return normalize_status(booking)


def count_occupied(bookings: Iterable[BookingLike]) -> int:
    """Count seat-consuming bookings; only agent cancellations free a seat."""
    return sum(1 for booking in bookings if _status_of(booking) != BookingStatus.CANCELLED)


def compute_availability(slot: TimeSlot, bookings: Iterable[BookingLike]) -> SlotAvailability:
    """Occupancy of one slot from the bookings that reference it."""
    occupied = count_occupied(bookings)
    return SlotAvailability(
        slot_id=slot.id,
        start_time=slot.start_time,
        end_time=slot.end_time,
        occupied=occupied,
        capacity=slot.max_participants,
        is_full=occupied >= slot.max_participants,
    )


async def get_slot_availability(slot_id: str) -> SlotAvailability:
    """Re-read a slot and its bookings and compute current occupancy."""
    row = await get_time_slot(slot_id)
    if row is None:
        raise SlotNotFoundError(f"Time slot not found: {slot_id}")

    bookings = await get_slot_booking_states(slot_id)
    return compute_availability(TimeSlot.model_validate(row), bookings)


async def get_event_availability(open_house_id: str) -> list[SlotAvailability]:
    """Occupancy of every slot of a bookable event, ordered by start time."""
    row = await get_open_house(open_house_id)
    if row is None:
        raise EventNotFoundError(f"Open house not found: {open_house_id}")

    try:
        event = OpenHouseEvent.model_validate(row)
    except PydanticValidationError as e:
        raise SupabaseError(f"Stored open house is invalid: {e}") from e

    if not event.is_bookable:
        raise EventInactiveError("Open house is not available for booking")

    slot_rows = await get_time_slots_with_bookings(open_house_id)
    availability = []
    for slot_row in slot_rows:
        bookings = slot_row.pop("bookings", None) or []
        availability.append(compute_availability(TimeSlot.model_validate(slot_row), bookings))

    logger.debug(
        "Computed event availability",
        open_house_id=open_house_id,
        slots=len(availability),
        full_slots=sum(1 for slot in availability if slot.is_full),
    )
    return availability
