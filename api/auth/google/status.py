"""Google connection status of the acting agent."""

from api._base import JSONHandler
from openhouse.services.google_credentials import get_connection_status


class handler(JSONHandler):
    endpoint = "auth/google/status"

    async def handle_get(self):
        actor = await self.actor()
        return 200, await get_connection_status(actor.id)
