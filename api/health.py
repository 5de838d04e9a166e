"""Health check endpoint."""

from api._base import JSONHandler
from openhouse.utils.config import AppConfig


class handler(JSONHandler):
    """Health check handler for Vercel serverless function."""

    endpoint = "health"

    async def handle_get(self):
        return 200, {
            "status": "ok",
            "service": "openhouse-backend",
            "storage_configured": bool(AppConfig.SUPABASE_URL and AppConfig.SUPABASE_SERVICE_ROLE_KEY),
        }

    async def handle_post(self, body):
        """Same as GET."""
        return await self.handle_get()
