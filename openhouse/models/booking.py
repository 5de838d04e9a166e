"""Booking models.

A booking's status is a tagged variant: ``confirmed`` is the only non-terminal
state, ``completed`` / ``no_show`` / ``cancelled`` are terminal. Only
``cancelled`` releases the seat; a genuine no-show keeps it counted because
the seat was honoured at booking time.

Rows written before ``cancelled`` became a stored value carry
``status = "no_show"`` plus ``cancellation_reason = "cancelled_by_agent"``;
they are read back as ``cancelled``.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from openhouse.models.client import ClientInfo
from openhouse.utils.errors import ValidationError


CANCELLED_BY_AGENT = "cancelled_by_agent"


class BookingStatus(str, Enum):
    """Booking status variant."""
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.NO_SHOW, BookingStatus.CANCELLED})

DISPLAY_LABELS = {
    BookingStatus.CONFIRMED: "Confermata",
    BookingStatus.COMPLETED: "Completata",
    BookingStatus.NO_SHOW: "Non presentato",
    BookingStatus.CANCELLED: "Cancellata",
}


def normalize_status(row: dict) -> BookingStatus:
    """Resolve the status variant of a raw bookings row."""
    status = row.get("status") or BookingStatus.CONFIRMED.value
    if status == BookingStatus.NO_SHOW.value and row.get("cancellation_reason") == CANCELLED_BY_AGENT:
        return BookingStatus.CANCELLED
    return BookingStatus(status)


class Booking(BaseModel):
    """Booking row (bookings table)."""
    id: str = Field(..., description="Booking ID (uuid)")
    open_house_id: str = Field(..., description="Event booked")
    time_slot_id: str = Field(..., description="Slot whose seat this booking holds")
    client_id: str = Field(..., description="Client who booked")
    agent_id: str = Field(..., description="Owner of the event")
    status: BookingStatus = Field(default=BookingStatus.CONFIRMED)
    client_note: Optional[str] = Field(None, description="Free-text message from the booking form")
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[str] = None
    questionnaire_completed: bool = False
    confirmation_email_sent: bool = False
    brochure_email_sent: bool = False
    calendar_event_id: Optional[str] = None
    calendar_event_link: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_cancellation(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("status") == BookingStatus.NO_SHOW.value:
            if data.get("cancellation_reason") == CANCELLED_BY_AGENT:
                data = {**data, "status": BookingStatus.CANCELLED.value}
        return data

    @property
    def occupies_seat(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def display_label(self) -> str:
        return DISPLAY_LABELS[self.status]


class BookingRequest(BaseModel):
    """Public booking form submission."""
    event_id: str = Field(..., min_length=1, validation_alias=AliasChoices("event_id", "eventId", "openHouseId"))
    slot_id: str = Field(..., min_length=1, validation_alias=AliasChoices("slot_id", "slotId", "timeSlotId"))
    client: ClientInfo
    privacy_accepted: bool = Field(..., validation_alias=AliasChoices("privacy_accepted", "privacyAccepted"))
    marketing_accepted: bool = Field(False, validation_alias=AliasChoices("marketing_accepted", "marketingAccepted"))

    @field_validator("privacy_accepted")
    @classmethod
    def _privacy_required(cls, value: bool) -> bool:
        if not value:
            raise ValueError("privacy policy must be accepted")
        return value

    @classmethod
    def from_payload(cls, payload: dict) -> "BookingRequest":
        """Validate a raw payload, raising the domain ValidationError."""
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            fields = {
                ".".join(str(part) for part in err["loc"]): err["msg"]
                for err in e.errors()
            }
            raise ValidationError("Invalid booking request", details={"fields": fields}) from e
