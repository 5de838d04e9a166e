"""Client model - visitors who book open house slots."""

from typing import Optional
from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator


class Client(BaseModel):
    """Client row (clients table), unique by email."""
    id: str = Field(..., description="Client ID (uuid)")
    first_name: str
    last_name: str
    email: str = Field(..., description="Natural key")
    phone: Optional[str] = None
    gdpr_consent: bool = False
    marketing_consent: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ClientInfo(BaseModel):
    """Client fields submitted with a booking."""
    first_name: str = Field(..., min_length=1, validation_alias=AliasChoices("first_name", "nome"))
    last_name: str = Field(..., min_length=1, validation_alias=AliasChoices("last_name", "cognome"))
    email: EmailStr
    phone: str = Field(..., min_length=1, validation_alias=AliasChoices("phone", "telefono"))
    message: Optional[str] = Field(None, validation_alias=AliasChoices("message", "messaggio"))

    @field_validator("first_name", "last_name", "phone", "email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("message")
    @classmethod
    def _blank_message(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None
