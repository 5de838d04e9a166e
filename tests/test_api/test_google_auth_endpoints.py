"""Tests for the Google connect endpoints."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from api.auth.google.callback import handler as callback_handler
from api.auth.google.index import handler as connect_handler
from api.auth.google.status import handler as status_handler
from openhouse.models.notification import GoogleCredentials
from openhouse.utils.errors import AuthenticationError
from tests.utils.assertions import assert_error_response
from tests.utils.helpers import auth_headers, call_handler


@pytest.fixture
def authenticated(agent_user):
    with patch("api._base.resolve_actor", AsyncMock(return_value=agent_user)):
        yield agent_user


@pytest.mark.unit
def test_connect_returns_auth_url(authenticated):
    """Test the consent URL is bound to the signed-in agent."""
    status, _, body = call_handler(connect_handler, "GET", "/api/auth/google", headers=auth_headers())

    assert status == 200
    assert body["authUrl"].startswith("https://accounts.google.com/")
    assert f"state={authenticated.id}" in body["authUrl"]


@pytest.mark.unit
def test_connect_requires_auth():
    with patch("api._base.resolve_actor", AsyncMock(side_effect=AuthenticationError("Missing bearer token"))):
        status, _, body = call_handler(connect_handler, "GET", "/api/auth/google")

    assert status == 401
    assert_error_response(body, "AuthenticationError")


@pytest.mark.unit
def test_callback_stores_tokens_for_actor(authenticated):
    """Test the code is exchanged for the acting agent and tokens are not echoed."""
    credentials = GoogleCredentials(
        agent_id=authenticated.id,
        access_token="ya29.secret",
        refresh_token="1//secret",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/gmail.send"],
    )

    with patch("api.auth.google.callback.exchange_authorization_code",
               AsyncMock(return_value=credentials)) as exchange:
        status, _, body = call_handler(
            callback_handler, "POST", "/api/auth/google/callback",
            body={"code": "4/code", "state": authenticated.id}, headers=auth_headers(),
        )

    assert status == 200
    assert body["success"] is True
    assert body["hasRefreshToken"] is True
    assert "ya29.secret" not in str(body)
    exchange.assert_awaited_once_with(authenticated.id, "4/code")


@pytest.mark.unit
def test_callback_state_of_other_agent(authenticated):
    """Test a code issued to another agent is refused."""
    with patch("api.auth.google.callback.exchange_authorization_code", AsyncMock()) as exchange:
        status, _, body = call_handler(
            callback_handler, "POST", "/api/auth/google/callback",
            body={"code": "4/code", "state": "someone-else"}, headers=auth_headers(),
        )

    assert status == 403
    exchange.assert_not_called()


@pytest.mark.unit
def test_callback_error_from_google(authenticated):
    status, _, body = call_handler(
        callback_handler, "POST", "/api/auth/google/callback",
        body={"error": "access_denied"}, headers=auth_headers(),
    )

    assert status == 400
    assert body["details"]["reason"] == "access_denied"


@pytest.mark.unit
def test_status(authenticated):
    result = {"connected": False, "reason": "No tokens found"}

    with patch("api.auth.google.status.get_connection_status", AsyncMock(return_value=result)) as lookup:
        status, _, body = call_handler(status_handler, "GET", "/api/auth/google/status", headers=auth_headers())

    assert status == 200
    assert body == result
    lookup.assert_awaited_once_with(authenticated.id)
