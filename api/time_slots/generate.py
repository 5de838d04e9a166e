"""Regenerate the time slots of an open house (owner or admin only)."""

from api._base import JSONHandler
from openhouse.services.slot_generator import regenerate_event_slots


def _slot_payload(slot) -> dict:
    return {
        "id": slot.id,
        "startTime": slot.start_time.strftime("%H:%M"),
        "endTime": slot.end_time.strftime("%H:%M"),
        "capacity": slot.max_participants,
    }


class handler(JSONHandler):
    """POST ``{eventId}`` with a bearer token."""

    endpoint = "time_slots/generate"

    async def handle_post(self, body):
        actor = await self.actor()
        open_house_id = body.get("eventId") or body.get("openHouseId")
        slots = await regenerate_event_slots(open_house_id, actor)
        return 200, {
            "success": True,
            "slotsCreated": len(slots),
            "slots": [_slot_payload(slot) for slot in slots],
        }
