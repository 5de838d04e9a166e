"""Public availability of an open house, or of a single slot."""

from api._base import JSONHandler
from openhouse.services.availability import get_event_availability, get_slot_availability
from openhouse.utils.errors import ValidationError


class handler(JSONHandler):
    """GET ``?eventId=`` for every slot, ``?slotId=`` for one."""

    endpoint = "open_houses/availability"

    async def handle_get(self):
        query = self.query
        slot_id = query.get("slotId")
        if slot_id:
            slot = await get_slot_availability(slot_id)
            return 200, {"slot": slot.to_response()}

        event_id = query.get("eventId") or query.get("openHouseId")
        if not event_id:
            raise ValidationError("eventId or slotId query parameter required")

        slots = await get_event_availability(event_id)
        return 200, {
            "eventId": event_id,
            "slots": [slot.to_response() for slot in slots],
        }
