"""Questionnaire completion: mark the client's pending booking and send the brochure."""

from datetime import datetime, timezone
from typing import Optional

from openhouse.models.notification import NotificationKind
from openhouse.services.supabase_client import (
    get_client_by_email,
    get_latest_pending_questionnaire_booking,
    update_booking,
)
from openhouse.utils.errors import ValidationError
from openhouse.utils.logging import get_structured_logger, mask_email, timed

logger = get_structured_logger(__name__)


@timed("complete_questionnaire")
async def complete_questionnaire(email: Optional[str], dispatcher=None) -> dict:
    """
    Handle a questionnaire submission for ``email``.

    Targets the client's most recent confirmed booking that has not completed
    the questionnaire yet. Returns ``{"found": False}`` when there is none.
    The brochure goes out through ``dispatcher.notify`` when a dispatcher is
    given.
    """
    email = (email or "").strip()
    if not email:
        raise ValidationError("Email missing")

    client = await get_client_by_email(email)
    if client is None:
        logger.info("Questionnaire from unknown client", email=mask_email(email))
        return {"found": False}

    pending = await get_latest_pending_questionnaire_booking(client["id"])
    if pending is None:
        logger.info("No pending booking for questionnaire", client_id=client["id"])
        return {"found": False}

    booking_id = pending["id"]
    await update_booking(booking_id, {
        "questionnaire_completed": True,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    })
    logger.info("Questionnaire completed", booking_id=booking_id, client_id=client["id"])

    brochure_sent = False
    if dispatcher is not None:
        result = await dispatcher.notify(booking_id, NotificationKind.BROCHURE)
        brochure_sent = result.email_sent

    return {"found": True, "bookingId": booking_id, "brochureSent": brochure_sent}
