"""Start the Google OAuth connect flow for the acting agent."""

from api._base import JSONHandler
from openhouse.services.google_credentials import authorization_url


class handler(JSONHandler):
    """GET with a bearer token; the frontend redirects the agent to ``authUrl``."""

    endpoint = "auth/google"

    async def handle_get(self):
        actor = await self.actor()
        return 200, {
            "authUrl": authorization_url(state=actor.id),
            "message": "Redirect to this URL to authenticate",
        }
