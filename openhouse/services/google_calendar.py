"""Google Calendar adapter: create and remove open house holds on the agent's calendar."""

from datetime import datetime
from typing import Optional
import httpx

from openhouse.models.notification import BookingContext, CalendarEventResult, GoogleCredentials
from openhouse.utils.config import AppConfig
from openhouse.utils.errors import UpstreamNotificationError
from openhouse.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

CALENDAR_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"


def build_event_body(context: BookingContext, timezone_name: Optional[str] = None) -> dict:
    """Calendar event payload for one booked slot, client invited as attendee."""
    timezone_name = timezone_name or AppConfig.EVENT_TIMEZONE
    event_date = context.open_house.event_date
    start = datetime.combine(event_date, context.time_slot.start_time)
    end = datetime.combine(event_date, context.time_slot.end_time)

    description = "\n".join(line for line in [
        f"Cliente: {context.client.full_name}",
        f"Email: {context.client.email}",
        f"Telefono: {context.client.phone}" if context.client.phone else None,
        f"Immobile: {context.listing.title}",
        f"Indirizzo: {context.listing.location}",
        f"Note: {context.booking.client_note}" if context.booking.client_note else None,
    ] if line)

    return {
        "summary": f"Open House - {context.listing.title}",
        "location": context.listing.location,
        "description": description,
        "start": {"dateTime": start.isoformat(), "timeZone": timezone_name},
        "end": {"dateTime": end.isoformat(), "timeZone": timezone_name},
        "attendees": [{"email": context.client.email, "displayName": context.client.full_name}],
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 30},
            ],
        },
    }


class GoogleCalendarClient:
    """Thin REST client over the agent's primary calendar."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=AppConfig.NOTIFICATION_HTTP_TIMEOUT_SECONDS,
        )

    async def create_open_house_event(
        self,
        credentials: GoogleCredentials,
        context: BookingContext,
    ) -> CalendarEventResult:
        body = build_event_body(context)
        try:
            async with self._client() as client:
                response = await client.post(
                    CALENDAR_EVENTS_URL,
                    params={"sendUpdates": "all"},
                    headers={"Authorization": f"Bearer {credentials.access_token}"},
                    json=body,
                )
        except httpx.HTTPError as e:
            raise UpstreamNotificationError(f"Calendar event creation failed: {e}") from e

        if response.status_code >= 400:
            raise UpstreamNotificationError(
                f"Calendar event creation failed with status {response.status_code}",
                details={"body": response.text[:200]},
            )

        data = response.json()
        logger.info(
            "Calendar event created",
            booking_id=context.booking.id,
            event_id=data.get("id"),
        )
        return CalendarEventResult(
            success=True,
            event_id=data.get("id"),
            event_link=data.get("htmlLink"),
            summary=data.get("summary"),
        )

    async def delete_calendar_event(self, credentials: GoogleCredentials, event_id: str) -> None:
        """Delete a hold. An event already gone (404/410) counts as deleted."""
        try:
            async with self._client() as client:
                response = await client.delete(
                    f"{CALENDAR_EVENTS_URL}/{event_id}",
                    params={"sendUpdates": "all"},
                    headers={"Authorization": f"Bearer {credentials.access_token}"},
                )
        except httpx.HTTPError as e:
            raise UpstreamNotificationError(f"Calendar event deletion failed: {e}") from e

        if response.status_code in (404, 410):
            logger.info("Calendar event already removed", event_id=event_id)
            return
        if response.status_code >= 400:
            raise UpstreamNotificationError(
                f"Calendar event deletion failed with status {response.status_code}",
                details={"body": response.text[:200]},
            )
        logger.info("Calendar event deleted", event_id=event_id)
