"""Questionnaire form webhook."""

from api._base import JSONHandler
from openhouse.services.questionnaire import complete_questionnaire


class handler(JSONHandler):
    """POST ``{email}`` once a client submits the questionnaire."""

    endpoint = "webhooks/questionnaire"

    async def handle_post(self, body):
        result = await complete_questionnaire(body.get("email"), dispatcher=self.dispatcher)
        if not result["found"]:
            return 200, {"success": True, "message": "No pending booking found"}
        return 200, {"success": True, **result}
