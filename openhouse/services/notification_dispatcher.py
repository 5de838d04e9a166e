"""
Notification dispatcher - post-admission side effects.

After a booking is admitted the client gets a confirmation email and a hold
on the agent's calendar, and the agent gets a new-booking email. None of this
can affect the booking: every failure is logged and reported on the returned
``NotificationResult``, never raised to the admission path.

Work is scheduled as asyncio tasks tracked on the dispatcher so a request
handler can write its response first and then ``await dispatcher.drain()``
before the process is frozen.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Union

from openhouse.models.agent import Agent
from openhouse.models.booking import Booking
from openhouse.models.client import Client
from openhouse.models.notification import (
    BookingContext,
    GoogleCredentials,
    NotificationKind,
    NotificationResult,
)
from openhouse.models.open_house import OpenHouseEvent
from openhouse.models.property import Property
from openhouse.models.time_slot import TimeSlot
from openhouse.services import email_templates
from openhouse.services.gmail_sender import GmailSender
from openhouse.services.google_calendar import GoogleCalendarClient
from openhouse.services.google_credentials import get_active_credentials
from openhouse.services.supabase_client import get_booking, get_booking_context, update_booking
from openhouse.utils.errors import BookingNotFoundError, SupabaseError
from openhouse.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

CredentialsProvider = Callable[[str], Awaitable[GoogleCredentials]]

ADMISSION_KINDS = (NotificationKind.CLIENT_CONFIRMATION, NotificationKind.AGENT_NOTIFICATION)


async def load_booking_context(booking_id: str) -> BookingContext:
    """Load a booking with everything the emails and calendar hold need."""
    row = await get_booking_context(booking_id)
    if row is None:
        raise BookingNotFoundError(f"Booking not found: {booking_id}")

    event_row = dict(row.get("open_houses") or {})
    listing_row = event_row.pop("properties", None)
    agent_row = event_row.pop("agents", None)
    if not row.get("clients") or not row.get("time_slots") or not listing_row or not agent_row:
        raise SupabaseError(f"Booking {booking_id} is missing related records")

    booking_row = {
        key: value for key, value in row.items()
        if key not in ("clients", "time_slots", "open_houses")
    }
    return BookingContext(
        booking=Booking.model_validate(booking_row),
        client=Client.model_validate(row["clients"]),
        time_slot=TimeSlot.model_validate(row["time_slots"]),
        open_house=OpenHouseEvent.model_validate(event_row),
        listing=Property.model_validate(listing_row),
        agent=Agent.model_validate(agent_row),
    )


class NotificationDispatcher:
    """Send booking emails and manage calendar holds with the agent's Google account."""

    def __init__(
        self,
        mailer: Optional[GmailSender] = None,
        calendar: Optional[GoogleCalendarClient] = None,
        credentials_provider: Optional[CredentialsProvider] = None,
    ):
        self.mailer = mailer or GmailSender()
        self.calendar = calendar or GoogleCalendarClient()
        self.credentials_provider = credentials_provider or get_active_credentials
        self._pending: set[asyncio.Task] = set()

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def schedule(self, booking_id: str) -> asyncio.Task:
        """Fire the post-admission notifications without waiting for them."""
        return self._track(self.dispatch_booking_notifications(booking_id))

    def schedule_calendar_release(self, booking_id: str) -> asyncio.Task:
        """Remove a cancelled booking's calendar hold without waiting for it."""
        return self._track(self.release_calendar_hold(booking_id))

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled task, including ones scheduled while waiting."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def dispatch_booking_notifications(self, booking_id: str) -> list[NotificationResult]:
        """Client confirmation first, then the agent notice."""
        return [await self.notify(booking_id, kind) for kind in ADMISSION_KINDS]

    async def notify(self, booking_id: str, kind: Union[NotificationKind, str]) -> NotificationResult:
        """
        Run one notification for a booking.

        Safe to repeat: a calendar hold is only created when the booking has
        none, and the brochure is skipped once ``brochure_email_sent`` is set.
        """
        kind = NotificationKind(kind)
        result = NotificationResult(booking_id=booking_id, kind=kind)

        try:
            context = await load_booking_context(booking_id)
            credentials = await self.credentials_provider(context.agent.id)
        except Exception as e:
            logger.error(
                "Notification setup failed",
                booking_id=booking_id,
                kind=kind.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            result.errors.append(f"setup: {e}")
            return result

        if kind == NotificationKind.CLIENT_CONFIRMATION:
            await self._client_confirmation(context, credentials, result)
        elif kind == NotificationKind.AGENT_NOTIFICATION:
            await self._agent_notification(context, credentials, result)
        else:
            await self._brochure(context, credentials, result)

        logger.info(
            "Notification finished",
            booking_id=booking_id,
            kind=kind.value,
            email_sent=result.email_sent,
            calendar_event_id=result.calendar_event_id,
            errors=len(result.errors),
        )
        return result

    async def _send(self, credentials: GoogleCredentials, to: str, subject: str, html: str,
                    result: NotificationResult) -> bool:
        try:
            await self.mailer.send_email(credentials, to, subject, html)
        except Exception as e:
            logger.error(
                "Email send failed",
                booking_id=result.booking_id,
                kind=result.kind.value,
                to=mask_email(to),
                error=str(e),
            )
            result.errors.append(f"email: {e}")
            return False
        result.email_sent = True
        return True

    async def _persist(self, booking_id: str, updates: dict, result: NotificationResult) -> None:
        updates["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            await update_booking(booking_id, updates)
        except Exception as e:
            logger.error("Notification tracking update failed", booking_id=booking_id, error=str(e))
            result.errors.append(f"tracking: {e}")

    async def _client_confirmation(self, context: BookingContext, credentials: GoogleCredentials,
                                   result: NotificationResult) -> None:
        subject, html = email_templates.client_confirmation(context)
        if not await self._send(credentials, context.client.email, subject, html, result):
            return

        # The email went out; the flag is set even if the calendar step fails
        updates: dict = {"confirmation_email_sent": True}

        if context.booking.calendar_event_id:
            logger.info(
                "Calendar hold already exists",
                booking_id=context.booking.id,
                event_id=context.booking.calendar_event_id,
            )
            result.calendar_event_id = context.booking.calendar_event_id
            result.calendar_event_link = context.booking.calendar_event_link
        else:
            try:
                event = await self.calendar.create_open_house_event(credentials, context)
            except Exception as e:
                logger.warning("Calendar hold creation failed", booking_id=context.booking.id, error=str(e))
                result.errors.append(f"calendar: {e}")
            else:
                if event.success and event.event_id:
                    updates["calendar_event_id"] = event.event_id
                    updates["calendar_event_link"] = event.event_link
                    result.calendar_event_id = event.event_id
                    result.calendar_event_link = event.event_link

        await self._persist(context.booking.id, updates, result)

    async def _agent_notification(self, context: BookingContext, credentials: GoogleCredentials,
                                  result: NotificationResult) -> None:
        subject, html = email_templates.agent_notification(context)
        await self._send(credentials, context.agent.email, subject, html, result)

    async def _brochure(self, context: BookingContext, credentials: GoogleCredentials,
                        result: NotificationResult) -> None:
        if context.booking.brochure_email_sent:
            logger.info("Brochure already sent", booking_id=context.booking.id)
            return
        subject, html = email_templates.brochure(context)
        if await self._send(credentials, context.client.email, subject, html, result):
            await self._persist(context.booking.id, {"brochure_email_sent": True}, result)

    async def release_calendar_hold(self, booking_id: str) -> bool:
        """Delete a booking's calendar hold and clear its reference. Never raises."""
        try:
            row = await get_booking(booking_id)
            if row is None:
                raise BookingNotFoundError(f"Booking not found: {booking_id}")
            booking = Booking.model_validate(row)
            if not booking.calendar_event_id:
                return False

            credentials = await self.credentials_provider(booking.agent_id)
            await self.calendar.delete_calendar_event(credentials, booking.calendar_event_id)
            await update_booking(booking_id, {
                "calendar_event_id": None,
                "calendar_event_link": None,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })
        except Exception as e:
            logger.error("Calendar hold release failed", booking_id=booking_id, error=str(e))
            return False

        logger.info("Calendar hold released", booking_id=booking_id)
        return True
