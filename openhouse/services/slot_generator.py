"""Slot generator - partition an open house window into fixed-length slots."""

from datetime import date, datetime, time, timedelta
from pydantic import ValidationError as PydanticValidationError

from openhouse.models.agent import AuthUser
from openhouse.models.open_house import OpenHouseEvent
from openhouse.models.time_slot import SlotSpec, TimeSlot
from openhouse.services.supabase_client import get_open_house, replace_time_slots
from openhouse.utils.config import AppConfig
from openhouse.utils.errors import (
    AuthorizationError,
    EventNotFoundError,
    SlotRegenerationBlockedError,
    SupabaseError,
    ValidationError,
)
from openhouse.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


def generate_slots(
    window_start: time,
    window_end: time,
    slot_duration_minutes: int,
    capacity_per_slot: int,
) -> list[SlotSpec]:
    """
    Walk the window in fixed steps and emit every slot that fits entirely.

    Slots are ``[t, t + duration)`` starting at ``window_start``; a trailing
    remainder shorter than ``duration`` is dropped. Pure and deterministic.
    """
    if slot_duration_minutes <= 0:
        raise ValidationError("slot_duration_minutes must be positive")
    if capacity_per_slot < 1:
        raise ValidationError("capacity_per_slot must be at least 1")
    if window_end <= window_start:
        raise ValidationError("window_end must be after window_start")

    # Anchor on an arbitrary day so timedelta arithmetic works on wall-clock times
    anchor = date.min
    current = datetime.combine(anchor, window_start)
    end = datetime.combine(anchor, window_end)
    step = timedelta(minutes=slot_duration_minutes)

    slots = []
    while current + step <= end:
        slots.append(SlotSpec(
            start_time=current.time(),
            end_time=(current + step).time(),
            capacity=capacity_per_slot,
        ))
        current += step

    return slots


def slots_for_event(event: OpenHouseEvent) -> list[SlotSpec]:
    """Generate the slot set an event's configuration describes."""
    return generate_slots(
        event.start_time,
        event.end_time,
        event.slot_duration_minutes,
        event.max_participants_per_slot,
    )


async def regenerate_event_slots(open_house_id: str, actor: AuthUser) -> list[TimeSlot]:
    """
    Replace an event's slots with a freshly generated set.

    Delete and insert run in one transaction inside ``replace_time_slots``.
    Regeneration is refused while any booking references the event.
    """
    if not open_house_id:
        raise ValidationError("Open house ID missing")

    row = await get_open_house(open_house_id)
    if row is None:
        raise EventNotFoundError(f"Open house not found: {open_house_id}")

    try:
        event = OpenHouseEvent.model_validate(row)
    except PydanticValidationError as e:
        raise ValidationError(f"Open house configuration is invalid: {e.errors()[0]['msg']}") from e

    if not event.has_allowed_duration:
        allowed = ", ".join(str(d) for d in sorted(AppConfig.ALLOWED_SLOT_DURATIONS))
        raise ValidationError(
            f"slot_duration_minutes must be one of {allowed}",
            details={"slot_duration_minutes": event.slot_duration_minutes},
        )

    if not actor.can_act_for(event.agent_id):
        logger.warning(
            "Slot regeneration denied",
            open_house_id=open_house_id,
            actor_id=actor.id,
            owner_id=event.agent_id,
        )
        raise AuthorizationError("Only the owning agent or an admin can regenerate slots")

    specs = slots_for_event(event)

    with log_timing("regenerate_event_slots", logger=logger, open_house_id=open_house_id):
        result = await replace_time_slots(event.id, [spec.to_row(event.id) for spec in specs])

    outcome = result.get("outcome")
    if outcome == "blocked":
        raise SlotRegenerationBlockedError(
            "Slots cannot be regenerated once bookings exist for this open house",
            details={"bookings": result.get("bookings", 0)},
        )
    if outcome != "replaced":
        raise SupabaseError(f"Unexpected replace_time_slots outcome: {outcome}")

    slots = [TimeSlot.model_validate(slot) for slot in result.get("slots", [])]
    logger.info(
        "Time slots regenerated",
        open_house_id=open_house_id,
        slots_created=len(slots),
        slot_duration_minutes=event.slot_duration_minutes,
    )
    return slots
