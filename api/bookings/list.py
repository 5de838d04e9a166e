"""Bookings dashboard listing."""

from api._base import JSONHandler
from openhouse.services.booking_lifecycle import list_agent_bookings


class handler(JSONHandler):
    """GET ``?status=&search=`` with a bearer token."""

    endpoint = "bookings/list"

    async def handle_get(self):
        actor = await self.actor()
        query = self.query
        bookings = await list_agent_bookings(actor, query.get("status"), query.get("search"))
        return 200, {"bookings": bookings, "count": len(bookings)}
