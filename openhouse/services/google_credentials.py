"""
Per-agent Google OAuth token sets.

An agent connects once through the authorization-code flow
(``authorization_url`` then ``exchange_authorization_code``); the stored
token set is then loaded by the notification dispatcher and refreshed when
close to expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode
import httpx

from openhouse.models.notification import GoogleCredentials
from openhouse.services.supabase_client import get_agent_credentials, save_agent_credentials
from openhouse.utils.config import AppConfig
from openhouse.utils.errors import UpstreamNotificationError, ValidationError
from openhouse.utils.logging import get_structured_logger, mask_sensitive_data

logger = get_structured_logger(__name__)


def authorization_url(state: str) -> str:
    """Google consent screen URL; ``state`` comes back untouched on the callback."""
    params = {
        "client_id": AppConfig.GOOGLE_CLIENT_ID,
        "redirect_uri": AppConfig.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(AppConfig.GOOGLE_SCOPES),
        # offline + consent so Google always returns a refresh token
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{AppConfig.GOOGLE_AUTH_URI}?{urlencode(params)}"


async def _token_request(data: dict, action: str, transport: Optional[httpx.AsyncBaseTransport]) -> dict:
    """POST to the token endpoint and return its JSON body."""
    try:
        async with httpx.AsyncClient(
            transport=transport,
            timeout=AppConfig.NOTIFICATION_HTTP_TIMEOUT_SECONDS,
        ) as client:
            response = await client.post(
                AppConfig.GOOGLE_TOKEN_URI,
                data={
                    "client_id": AppConfig.GOOGLE_CLIENT_ID,
                    "client_secret": AppConfig.GOOGLE_CLIENT_SECRET,
                    **data,
                },
            )
    except httpx.HTTPError as e:
        raise UpstreamNotificationError(f"Google {action} failed: {e}") from e

    if response.status_code != 200:
        raise UpstreamNotificationError(
            f"Google {action} failed with status {response.status_code}",
            details={"body": mask_sensitive_data(response.text[:200])},
        )

    payload = response.json()
    if not payload.get("access_token"):
        raise UpstreamNotificationError(f"Google {action} returned no access token")
    return payload


async def _persist(credentials: GoogleCredentials) -> None:
    await save_agent_credentials({
        "agent_id": credentials.agent_id,
        "access_token": credentials.access_token,
        "refresh_token": credentials.refresh_token,
        "expires_at": credentials.expires_at.isoformat() if credentials.expires_at else None,
        "scopes": credentials.scopes,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    })


def _expires_at(payload: dict) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=int(payload.get("expires_in", 3600)))


async def exchange_authorization_code(
    agent_id: str,
    code: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GoogleCredentials:
    """
    Trade the callback's authorization code for a token set and store it for ``agent_id``.

    Reconnecting replaces the stored set. When Google omits the refresh token
    (the agent already granted access) the previously stored one is kept.
    """
    code = (code or "").strip()
    if not code:
        raise ValidationError("Authorization code missing")

    payload = await _token_request(
        {
            "code": code,
            "redirect_uri": AppConfig.GOOGLE_REDIRECT_URI,
            "grant_type": "authorization_code",
        },
        "authorization code exchange",
        transport,
    )

    refresh_token = payload.get("refresh_token")
    if not refresh_token:
        existing = await get_agent_credentials(agent_id)
        refresh_token = existing.get("refresh_token") if existing else None

    scope = payload.get("scope")
    credentials = GoogleCredentials(
        agent_id=agent_id,
        access_token=payload["access_token"],
        refresh_token=refresh_token,
        expires_at=_expires_at(payload),
        scopes=scope.split() if scope else list(AppConfig.GOOGLE_SCOPES),
    )
    await _persist(credentials)
    logger.info(
        "Google account connected",
        agent_id=agent_id,
        has_refresh_token=bool(refresh_token),
        scopes=credentials.scopes,
    )
    return credentials


async def refresh_credentials(
    credentials: GoogleCredentials,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GoogleCredentials:
    """Exchange the refresh token for a new access token and persist it."""
    if not credentials.refresh_token:
        raise UpstreamNotificationError(
            f"Google access token expired and no refresh token stored for agent {credentials.agent_id}"
        )

    logger.info("Refreshing Google access token", agent_id=credentials.agent_id)
    payload = await _token_request(
        {"refresh_token": credentials.refresh_token, "grant_type": "refresh_token"},
        "token refresh",
        transport,
    )

    refreshed = credentials.model_copy(update={
        "access_token": payload["access_token"],
        "expires_at": _expires_at(payload),
        # Google only rotates the refresh token occasionally
        "refresh_token": payload.get("refresh_token") or credentials.refresh_token,
    })
    await _persist(refreshed)
    logger.info("Google access token refreshed", agent_id=refreshed.agent_id)
    return refreshed


async def get_active_credentials(
    agent_id: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GoogleCredentials:
    """Return a usable token set for an agent, refreshing it when close to expiry."""
    row = await get_agent_credentials(agent_id)
    if row is None:
        raise UpstreamNotificationError(f"Google account not connected for agent {agent_id}")

    credentials = GoogleCredentials.model_validate(row)
    if credentials.expires_within(AppConfig.TOKEN_REFRESH_MARGIN_SECONDS):
        credentials = await refresh_credentials(credentials, transport=transport)
    return credentials


async def get_connection_status(agent_id: str) -> dict:
    """Whether the agent's stored token set can still send email and create events."""
    row = await get_agent_credentials(agent_id)
    if row is None:
        return {"connected": False, "reason": "No tokens found"}

    credentials = GoogleCredentials.model_validate(row)
    if credentials.expires_within(0) and not credentials.refresh_token:
        return {"connected": False, "reason": "Tokens expired"}

    missing = sorted(set(AppConfig.GOOGLE_SCOPES) - set(credentials.scopes))
    if missing:
        return {"connected": False, "reason": "Missing scopes", "missingScopes": missing}

    return {
        "connected": True,
        "expiresAt": credentials.expires_at.isoformat() if credentials.expires_at else None,
        "scopes": credentials.scopes,
    }
