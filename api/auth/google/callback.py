"""Finish the Google OAuth connect flow: store the agent's token set."""

from api._base import JSONHandler
from openhouse.services.google_credentials import exchange_authorization_code
from openhouse.utils.errors import AuthorizationError, ValidationError


class handler(JSONHandler):
    """
    POST ``{code, state?, error?}`` with a bearer token.

    The frontend receives Google's redirect and forwards its query
    parameters here. ``state`` must be the acting agent's id when present.
    """

    endpoint = "auth/google/callback"

    async def handle_post(self, body):
        actor = await self.actor()
        if body.get("error"):
            raise ValidationError("OAuth authorization failed", details={"reason": body["error"]})
        state = body.get("state")
        if state and state != actor.id:
            raise AuthorizationError("OAuth state does not match the signed-in agent")

        credentials = await exchange_authorization_code(actor.id, body.get("code"))
        return 200, {
            "success": True,
            "message": "OAuth authorization successful",
            "expiresAt": credentials.expires_at.isoformat() if credentials.expires_at else None,
            "hasRefreshToken": credentials.refresh_token is not None,
            "scopes": credentials.scopes,
        }
