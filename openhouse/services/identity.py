"""Identity boundary: turn a bearer token into the acting agent."""

from typing import Mapping, Optional

from openhouse.models.agent import Agent, AuthUser
from openhouse.services.supabase_client import get_agent_by_email, get_auth_user
from openhouse.utils.errors import AuthenticationError, AuthorizationError
from openhouse.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)


def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Extract the token of an ``Authorization: Bearer ...`` header."""
    value = headers.get("Authorization") or headers.get("authorization") or ""
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def resolve_actor(access_token: Optional[str]) -> AuthUser:
    """
    Resolve the agent behind a session token.

    The token is verified by Supabase Auth; the role comes from the agents
    table row matching the session email.
    """
    if not access_token:
        raise AuthenticationError("Missing bearer token")

    user = await get_auth_user(access_token)
    email = getattr(user, "email", None) if user else None
    if not email:
        raise AuthenticationError("Invalid or expired session")

    row = await get_agent_by_email(email)
    if row is None:
        logger.warning("Session without active agent", email=mask_email(email))
        raise AuthorizationError("No active agent for this account")

    agent = Agent.model_validate(row)
    return AuthUser(
        id=agent.id,
        email=agent.email,
        role=agent.role,
        first_name=agent.first_name,
        last_name=agent.last_name,
    )
