"""Booking lifecycle manager - drive bookings out of ``confirmed``.

    confirmed --> completed
    confirmed --> no_show      (seat stays counted)
    confirmed --> cancelled    (seat released)

Every transition is applied with a conditional update guarded on
``status = 'confirmed'``, so two agents racing on the same booking cannot
both succeed.
"""

from datetime import datetime, timezone
from typing import Optional

from openhouse.models.agent import AuthUser
from openhouse.models.booking import (
    CANCELLED_BY_AGENT,
    DISPLAY_LABELS,
    Booking,
    BookingStatus,
    normalize_status,
)
from openhouse.services.supabase_client import get_booking, list_bookings, transition_booking
from openhouse.utils.errors import (
    AuthorizationError,
    BookingNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from openhouse.utils.logging import get_structured_logger, get_correlation_id

logger = get_structured_logger(__name__)

# Statuses reachable through update_booking_status; cancellation has its own operation
STATUS_UPDATE_TARGETS = frozenset({BookingStatus.COMPLETED, BookingStatus.NO_SHOW})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _load_owned_booking(booking_id: str, actor: AuthUser) -> Booking:
    if not booking_id:
        raise ValidationError("Booking ID missing")

    row = await get_booking(booking_id)
    if row is None:
        raise BookingNotFoundError(f"Booking not found: {booking_id}")

    booking = Booking.model_validate(row)
    if not actor.can_act_for(booking.agent_id):
        logger.warning(
            "Booking mutation denied",
            booking_id=booking_id,
            actor_id=actor.id,
            owner_id=booking.agent_id,
        )
        raise AuthorizationError("Agents can only manage bookings of their own open houses")
    return booking


async def _transition(booking_id: str, actor: AuthUser, target: BookingStatus, updates: dict) -> Booking:
    booking = await _load_owned_booking(booking_id, actor)

    if booking.status == BookingStatus.COMPLETED and target == BookingStatus.COMPLETED:
        return booking
    if booking.status != BookingStatus.CONFIRMED:
        raise InvalidTransitionError(
            f"Cannot move booking from {booking.status.value} to {target.value}",
            details={"current": booking.status.value, "requested": target.value},
        )

    row = await transition_booking(booking_id, updates, expected_status=BookingStatus.CONFIRMED.value)
    if row is None:
        # Someone else moved it between our read and the guarded write
        current_row = await get_booking(booking_id)
        if current_row is None:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")
        current = Booking.model_validate(current_row)
        if current.status == BookingStatus.COMPLETED and target == BookingStatus.COMPLETED:
            return current
        raise InvalidTransitionError(
            f"Cannot move booking from {current.status.value} to {target.value}",
            details={"current": current.status.value, "requested": target.value},
        )

    updated = Booking.model_validate(row)
    logger.info(
        "Booking status changed",
        correlation_id=get_correlation_id(),
        booking_id=booking_id,
        from_status=booking.status.value,
        to_status=updated.status.value,
        actor_id=actor.id,
    )
    return updated


async def mark_completed(booking_id: str, actor: AuthUser) -> Booking:
    """Client attended. No-op when already completed."""
    return await _transition(booking_id, actor, BookingStatus.COMPLETED, {
        "status": BookingStatus.COMPLETED.value,
        "updated_at": _now(),
    })


async def mark_no_show(booking_id: str, actor: AuthUser) -> Booking:
    """Client did not attend; the seat remains occupied."""
    return await _transition(booking_id, actor, BookingStatus.NO_SHOW, {
        "status": BookingStatus.NO_SHOW.value,
        "updated_at": _now(),
    })


async def cancel_by_agent(booking_id: str, actor: AuthUser, notifier=None) -> Booking:
    """
    Cancel a confirmed booking and release its seat.

    When ``notifier`` is given its ``schedule_calendar_release(booking_id)``
    is called to drop the calendar hold in the background.
    """
    now = _now()
    booking = await _transition(booking_id, actor, BookingStatus.CANCELLED, {
        "status": BookingStatus.CANCELLED.value,
        "cancellation_reason": CANCELLED_BY_AGENT,
        "cancelled_at": now,
        "updated_at": now,
    })

    if notifier is not None and booking.calendar_event_id:
        notifier.schedule_calendar_release(booking.id)

    return booking


async def update_booking_status(booking_id: str, new_status: str, actor: AuthUser) -> Booking:
    """Apply a ``completed`` or ``no_show`` outcome."""
    try:
        target = BookingStatus(new_status)
    except ValueError:
        target = None

    if target not in STATUS_UPDATE_TARGETS:
        raise ValidationError(
            f"Unsupported status: {new_status}",
            details={"allowed": sorted(status.value for status in STATUS_UPDATE_TARGETS)},
        )

    if target == BookingStatus.COMPLETED:
        return await mark_completed(booking_id, actor)
    return await mark_no_show(booking_id, actor)


def _matches_search(row: dict, needle: str) -> bool:
    client = row.get("clients") or {}
    listing = (row.get("open_houses") or {}).get("properties") or {}
    haystack = [
        client.get("first_name"),
        client.get("last_name"),
        client.get("email"),
        listing.get("title"),
    ]
    return any(needle in value.lower() for value in haystack if value)


async def list_agent_bookings(
    actor: AuthUser,
    status_filter: Optional[str] = None,
    search: Optional[str] = None,
) -> list[dict]:
    """
    Bookings visible to the actor, newest first.

    ``status_filter`` accepts the derived statuses (``cancelled`` included) or
    ``all``; ``search`` matches client name/email and property title.
    """
    wanted: Optional[BookingStatus] = None
    if status_filter and status_filter != "all":
        try:
            wanted = BookingStatus(status_filter)
        except ValueError:
            raise ValidationError(f"Unsupported status filter: {status_filter}")

    rows = await list_bookings(None if actor.is_admin else actor.id)

    needle = search.strip().lower() if search else ""
    bookings = []
    for row in rows:
        status = normalize_status(row)
        if wanted is not None and status != wanted:
            continue
        if needle and not _matches_search(row, needle):
            continue
        bookings.append({**row, "status": status.value, "display_label": DISPLAY_LABELS[status]})

    return bookings
