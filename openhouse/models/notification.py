"""Notification and Google integration models."""

from enum import Enum
from datetime import datetime, timedelta, timezone
from typing import Optional
from pydantic import BaseModel, Field

from openhouse.models.agent import Agent
from openhouse.models.booking import Booking
from openhouse.models.client import Client
from openhouse.models.open_house import OpenHouseEvent
from openhouse.models.property import Property
from openhouse.models.time_slot import TimeSlot


class NotificationKind(str, Enum):
    """Notification triggers. The first two fire after admission."""
    CLIENT_CONFIRMATION = "client_confirmation"
    AGENT_NOTIFICATION = "agent_notification"
    # Sent once the client completes the questionnaire
    BROCHURE = "brochure"


class GoogleCredentials(BaseModel):
    """Per-agent OAuth token set (agent_google_credentials table)."""
    agent_id: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    scopes: list[str] = Field(default_factory=list)

    def expires_within(self, margin_seconds: int, now: Optional[datetime] = None) -> bool:
        """True when the access token is expired or about to be."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now + timedelta(seconds=margin_seconds)


class CalendarEventResult(BaseModel):
    """Outcome of a calendar hold creation."""
    success: bool
    event_id: Optional[str] = None
    event_link: Optional[str] = None
    summary: Optional[str] = None


class BookingContext(BaseModel):
    """Everything a notification needs about one booking."""
    booking: Booking
    client: Client
    time_slot: TimeSlot
    open_house: OpenHouseEvent
    listing: Property
    agent: Agent


class NotificationResult(BaseModel):
    """What a dispatch managed to do; errors are reported, never raised."""
    booking_id: str
    kind: NotificationKind
    email_sent: bool = False
    calendar_event_id: Optional[str] = None
    calendar_event_link: Optional[str] = None
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
