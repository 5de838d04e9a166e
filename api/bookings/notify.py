"""Re-run booking notifications, e.g. after the agent reconnects Google."""

from api._base import JSONHandler
from openhouse.models.booking import Booking
from openhouse.models.notification import NotificationKind
from openhouse.services.notification_dispatcher import ADMISSION_KINDS
from openhouse.services.supabase_client import get_booking
from openhouse.utils.errors import AuthorizationError, BookingNotFoundError, ValidationError


class handler(JSONHandler):
    """
    POST ``{bookingId, type?}`` with a bearer token.

    ``type`` is one notification kind; without it both post-admission
    notifications run. The results are returned, not raised.
    """

    endpoint = "bookings/notify"

    async def handle_post(self, body):
        actor = await self.actor()
        booking_id = body.get("bookingId")
        if not booking_id:
            raise ValidationError("Booking ID missing")

        kinds = ADMISSION_KINDS
        if body.get("type"):
            try:
                kinds = (NotificationKind(body["type"]),)
            except ValueError:
                raise ValidationError(
                    f"Unsupported notification type: {body['type']}",
                    details={"allowed": [kind.value for kind in NotificationKind]},
                )

        row = await get_booking(booking_id)
        if row is None:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")
        if not actor.can_act_for(Booking.model_validate(row).agent_id):
            raise AuthorizationError("Agents can only notify bookings of their own open houses")

        results = [await self.dispatcher.notify(booking_id, kind) for kind in kinds]
        return 200, {
            "success": all(result.ok for result in results),
            "results": [result.model_dump(mode="json") for result in results],
        }
