"""Time slot models."""

from datetime import time
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SlotSpec(BaseModel):
    """A generated slot before it is persisted."""
    model_config = ConfigDict(frozen=True)

    start_time: time
    end_time: time
    capacity: int = Field(..., ge=1)

    def to_row(self, open_house_id: str) -> dict:
        return {
            "open_house_id": open_house_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "max_participants": self.capacity,
        }


class TimeSlot(BaseModel):
    """Persisted slot (time_slots table)."""
    id: str = Field(..., description="Slot ID (uuid)")
    open_house_id: str = Field(..., description="Parent event")
    start_time: time
    end_time: time
    max_participants: int = Field(default=1, ge=1, description="Per-slot capacity")
    created_at: Optional[str] = None


class SlotAvailability(BaseModel):
    """Occupancy snapshot of one slot."""
    slot_id: str
    start_time: time
    end_time: time
    occupied: int = Field(..., ge=0)
    capacity: int = Field(..., ge=1)
    is_full: bool

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.occupied, 0)

    def to_response(self) -> dict:
        return {
            "slotId": self.slot_id,
            "startTime": self.start_time.strftime("%H:%M"),
            "endTime": self.end_time.strftime("%H:%M"),
            "occupied": self.occupied,
            "capacity": self.capacity,
            "remaining": self.remaining,
            "isFull": self.is_full,
        }
