"""Agent model - the people who own properties and open house events."""

from enum import Enum
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field


class AgentRole(str, Enum):
    """Roles granted by the identity store."""
    ADMIN = "admin"
    AGENT = "agent"
    COLLABORATOR = "collaborator"


class Agent(BaseModel):
    """Agent row (agents table)."""
    id: str = Field(..., description="Agent ID (uuid)")
    email: str = Field(..., description="Login email, unique")
    first_name: str = Field(..., validation_alias=AliasChoices("first_name", "nome"))
    last_name: str = Field(..., validation_alias=AliasChoices("last_name", "cognome"))
    role: AgentRole = Field(default=AgentRole.AGENT, description="admin, agent or collaborator")
    phone: Optional[str] = Field(None, description="Phone number")
    is_active: bool = Field(default=True, description="Soft-delete flag")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AuthUser(BaseModel):
    """Acting user as returned by the identity boundary."""
    id: str = Field(..., description="Agent ID")
    email: str = Field(..., description="Email address")
    role: AgentRole = Field(..., description="Role claim, trusted as-is")
    first_name: str = Field("", validation_alias=AliasChoices("first_name", "nome"))
    last_name: str = Field("", validation_alias=AliasChoices("last_name", "cognome"))

    @property
    def is_admin(self) -> bool:
        return self.role == AgentRole.ADMIN

    def can_act_for(self, agent_id: Optional[str]) -> bool:
        """Admins act for everyone; agents and collaborators only for themselves."""
        return self.is_admin or (agent_id is not None and agent_id == self.id)
