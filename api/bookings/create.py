"""Public booking endpoint."""

from api._base import JSONHandler
from openhouse.services.booking_admission import admit_booking


class handler(JSONHandler):
    """
    POST the booking form.

    Returns 201 as soon as the booking is stored; confirmation emails and
    the calendar hold run after the response is written.
    """

    endpoint = "bookings/create"

    async def handle_post(self, body):
        booking = await admit_booking(body, notifier=self.dispatcher)
        return 201, {
            "success": True,
            "booking": booking.model_dump(mode="json"),
        }
