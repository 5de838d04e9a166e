"""Property (listing) model."""

from typing import Optional, Any
from pydantic import BaseModel, Field


class Property(BaseModel):
    """Real estate listing shown at an open house."""
    id: str = Field(..., description="Property ID (uuid)")
    agent_id: str = Field(..., description="Owning agent ID")
    title: str = Field(..., description="Listing title")
    property_type: Optional[str] = Field(None, description="Apartment, villa, office...")
    price: Optional[float] = Field(None, ge=0, description="Asking price")
    zone: Optional[str] = Field(None, description="Neighbourhood")
    address: Optional[str] = Field(None, description="Street address")
    city: Optional[str] = None
    province: Optional[str] = None
    features: dict[str, Any] = Field(default_factory=dict, description="Rooms, surface, extras")
    brochure_url: Optional[str] = Field(None, description="PDF brochure sent after the questionnaire")
    is_active: bool = Field(default=True, description="Soft-delete flag")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def location(self) -> str:
        """Best available location string for emails and calendar holds."""
        if self.address:
            return self.address
        parts = [part for part in (self.city, self.province) if part]
        return ", ".join(parts) or (self.zone or "")
