"""Tests for health check endpoint."""

import pytest
from http.server import BaseHTTPRequestHandler

from api.health import handler
from tests.utils.helpers import call_handler


@pytest.mark.unit
def test_health_handler_class():
    """Test that handler is a BaseHTTPRequestHandler subclass."""
    assert issubclass(handler, BaseHTTPRequestHandler)


@pytest.mark.unit
def test_health_get_request():
    """Test GET request to health endpoint."""
    status, headers, body = call_handler(handler, "GET", "/api/health")

    assert status == 200
    assert headers["Content-Type"] == "application/json"
    assert body["status"] == "ok"
    assert body["service"] == "openhouse-backend"
    assert body["storage_configured"] is True


@pytest.mark.unit
def test_health_post_request():
    """Test POST request to health endpoint."""
    status, _, body = call_handler(handler, "POST", "/api/health", body={})

    assert status == 200
    assert body["status"] == "ok"


@pytest.mark.unit
def test_health_echoes_correlation_id():
    """Test the caller's correlation id is returned."""
    _, headers, _ = call_handler(handler, "GET", "/api/health", headers={"X-Correlation-ID": "req_fixed"})

    assert headers["X-Correlation-ID"] == "req_fixed"
