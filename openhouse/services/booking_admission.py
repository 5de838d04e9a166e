"""Booking admission controller - validate, reserve a seat, persist, notify."""

from datetime import datetime, timezone
from typing import Union
from pydantic import ValidationError as PydanticValidationError

from openhouse.models.booking import Booking, BookingRequest
from openhouse.models.client import Client, ClientInfo
from openhouse.models.open_house import OpenHouseEvent
from openhouse.models.time_slot import TimeSlot
from openhouse.services.availability import compute_availability
from openhouse.services.supabase_client import (
    get_open_house,
    get_slot_booking_states,
    get_time_slot,
    reserve_seat,
    upsert_client,
)
from openhouse.utils.errors import (
    EventInactiveError,
    EventNotFoundError,
    SlotFullError,
    SlotNotFoundError,
    SupabaseError,
)
from openhouse.utils.logging import get_structured_logger, get_correlation_id, mask_email, log_timing

logger = get_structured_logger(__name__)


async def upsert_client_record(info: ClientInfo, privacy_accepted: bool, marketing_accepted: bool = False) -> Client:
    """
    Create the client on first booking, overwrite it on later ones.

    Keyed by exact email; name, phone and consent flags are replaced, not merged.
    """
    row = await upsert_client({
        "email": info.email,
        "first_name": info.first_name,
        "last_name": info.last_name,
        "phone": info.phone,
        "gdpr_consent": privacy_accepted,
        "marketing_consent": marketing_accepted,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    })
    return Client.model_validate(row)


async def _load_target(request: BookingRequest) -> tuple[OpenHouseEvent, TimeSlot]:
    event_row = await get_open_house(request.event_id)
    if event_row is None:
        raise EventNotFoundError(f"Open house not found: {request.event_id}")

    try:
        event = OpenHouseEvent.model_validate(event_row)
    except PydanticValidationError as e:
        raise SupabaseError(f"Stored open house is invalid: {e}") from e

    if not event.is_bookable:
        raise EventInactiveError("Open house is not available for booking")

    slot_row = await get_time_slot(request.slot_id)
    if slot_row is None or slot_row.get("open_house_id") != event.id:
        raise SlotNotFoundError(f"Time slot {request.slot_id} does not belong to open house {event.id}")

    return event, TimeSlot.model_validate(slot_row)


async def admit_booking(request: Union[BookingRequest, dict], notifier=None) -> Booking:
    """
    Admit or reject a booking request.

    The slot is re-checked against live booking rows, then the seat is taken
    by the ``admit_booking`` stored procedure, which repeats the count under a
    row lock so concurrent requests cannot overbook. The client upsert is not
    rolled back when the reservation fails.

    ``notifier`` (optional) must provide ``schedule(booking_id)``; it is called
    after the booking is persisted and is not awaited.
    """
    if not isinstance(request, BookingRequest):
        request = BookingRequest.from_payload(request)

    correlation_id = get_correlation_id()
    event, slot = await _load_target(request)

    client = await upsert_client_record(request.client, request.privacy_accepted, request.marketing_accepted)

    availability = compute_availability(slot, await get_slot_booking_states(slot.id))
    if availability.is_full:
        logger.info(
            "Booking rejected, slot full",
            correlation_id=correlation_id,
            open_house_id=event.id,
            slot_id=slot.id,
            occupied=availability.occupied,
            capacity=availability.capacity,
        )
        raise SlotFullError(
            "The selected time slot is full, please choose another one",
            details={"occupied": availability.occupied, "capacity": availability.capacity},
        )

    with log_timing("reserve_seat", logger=logger, slot_id=slot.id):
        result = await reserve_seat(event.id, slot.id, client.id, request.client.message)

    outcome = result.get("outcome")
    if outcome == "full":
        logger.info(
            "Booking rejected at reservation, slot filled concurrently",
            correlation_id=correlation_id,
            open_house_id=event.id,
            slot_id=slot.id,
            occupied=result.get("occupied"),
            capacity=result.get("capacity"),
        )
        raise SlotFullError(
            "The selected time slot is full, please choose another one",
            details={"occupied": result.get("occupied"), "capacity": result.get("capacity")},
        )
    if outcome == "slot_not_found":
        raise SlotNotFoundError(f"Time slot {slot.id} no longer exists")
    if outcome == "event_inactive":
        raise EventInactiveError("Open house is not available for booking")
    if outcome != "admitted" or not result.get("booking"):
        raise SupabaseError(f"Unexpected admit_booking outcome: {outcome}")

    booking = Booking.model_validate(result["booking"])
    logger.info(
        "Booking admitted",
        correlation_id=correlation_id,
        booking_id=booking.id,
        open_house_id=event.id,
        slot_id=slot.id,
        client_email=mask_email(client.email),
        occupied=result.get("occupied"),
        capacity=result.get("capacity"),
    )

    if notifier is not None:
        notifier.schedule(booking.id)

    return booking
