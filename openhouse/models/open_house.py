"""Open house event model."""

from enum import Enum
from datetime import date, time
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from openhouse.utils.config import AppConfig


class OpenHouseStatus(str, Enum):
    """Publication status of an event."""
    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OpenHouseEvent(BaseModel):
    """One scheduled viewing window for a property."""
    id: str = Field(..., description="Event ID (uuid)")
    property_id: str = Field(..., description="Property shown")
    agent_id: str = Field(..., description="Owning agent")
    event_date: date = Field(..., description="Day of the open house")
    start_time: time = Field(..., description="Window start (local time)")
    end_time: time = Field(..., description="Window end (local time)")
    slot_duration_minutes: int = Field(..., gt=0, description="Length of each bookable slot")
    max_participants_per_slot: int = Field(default=1, ge=1, description="Capacity copied onto each slot")
    description: Optional[str] = None
    status: OpenHouseStatus = Field(default=OpenHouseStatus.PUBLISHED)
    is_active: bool = Field(default=True, description="Soft-delete flag")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @model_validator(mode="after")
    def _window_order(self) -> "OpenHouseEvent":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def has_allowed_duration(self) -> bool:
        """Durations outside ``ALLOWED_SLOT_DURATIONS`` can be stored but not generated."""
        return self.slot_duration_minutes in AppConfig.ALLOWED_SLOT_DURATIONS

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.status == OpenHouseStatus.PUBLISHED
