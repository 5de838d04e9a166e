"""Record the outcome of a visit (completed / no_show)."""

from api._base import JSONHandler
from openhouse.services.booking_lifecycle import update_booking_status
from openhouse.utils.errors import ValidationError


class handler(JSONHandler):
    endpoint = "bookings/status"

    async def handle_post(self, body):
        actor = await self.actor()
        new_status = body.get("newStatus") or body.get("status")
        if not new_status:
            raise ValidationError("newStatus missing")

        booking = await update_booking_status(body.get("bookingId"), new_status, actor)
        return 200, {
            "success": True,
            "booking": booking.model_dump(mode="json"),
            "displayLabel": booking.display_label,
        }
