"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional, Tuple
from unittest.mock import MagicMock


class MockSocket:
    """Socket double: serves one raw HTTP request and records what is sent back."""

    def __init__(self, raw_request: bytes):
        self.raw_request = raw_request
        self.sent = b""

    def makefile(self, *args, **kwargs):
        return BytesIO(self.raw_request)

    def sendall(self, data):
        self.sent += bytes(data)

    def close(self):
        pass


def build_http_request(
    method: str,
    path: str,
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """Serialize a request the way a client would put it on the wire."""
    payload = json.dumps(body).encode('utf-8') if body is not None else b""
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if payload:
        lines.append("Content-Type: application/json")
        lines.append(f"Content-Length: {len(payload)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode('utf-8') + payload


def call_handler(
    handler_class,
    method: str = "GET",
    path: str = "/",
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Dict[str, str], Dict[str, Any]]:
    """
    Run a BaseHTTPRequestHandler subclass against one request.

    Returns ``(status, headers, json_body)``.
    """
    sock = MockSocket(build_http_request(method, path, body, headers))
    handler_class(sock, ("127.0.0.1", 8000), None)

    head, _, raw_body = sock.sent.partition(b"\r\n\r\n")
    status_line, *header_lines = head.decode('utf-8').split("\r\n")
    status = int(status_line.split(" ")[1])
    response_headers = {}
    for line in header_lines:
        name, _, value = line.partition(":")
        response_headers[name.strip()] = value.strip()
    return status, response_headers, json.loads(raw_body) if raw_body else {}


def supabase_result(data) -> MagicMock:
    """What ``query.execute()`` returns."""
    return MagicMock(data=data)


def auth_headers(token: str = "session-token") -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
