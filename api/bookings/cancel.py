"""Agent cancellation of a confirmed booking."""

from api._base import JSONHandler
from openhouse.services.booking_lifecycle import cancel_by_agent


class handler(JSONHandler):
    endpoint = "bookings/cancel"

    async def handle_post(self, body):
        actor = await self.actor()
        booking = await cancel_by_agent(body.get("bookingId"), actor, notifier=self.dispatcher)
        return 200, {
            "success": True,
            "booking": booking.model_dump(mode="json"),
            "displayLabel": booking.display_label,
        }
