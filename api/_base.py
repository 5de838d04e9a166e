"""Shared plumbing for the Vercel serverless handlers."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import asyncio
import json

from openhouse.models.agent import AuthUser
from openhouse.services.identity import bearer_token, resolve_actor
from openhouse.services.notification_dispatcher import NotificationDispatcher
from openhouse.utils.errors import OpenHouseError, ValidationError
from openhouse.utils.logging import (
    correlation_context,
    generate_correlation_id,
    get_structured_logger,
    mask_sensitive_data,
)
from openhouse.utils.logging_config import LoggingConfig

LoggingConfig.ensure_configured()
logger = get_structured_logger("api")


class JSONHandler(BaseHTTPRequestHandler):
    """
    Base handler: JSON in, JSON out, domain errors mapped to status codes.

    Subclasses implement ``async handle_get(self)`` and/or
    ``async handle_post(self, body)`` returning ``(status, payload)``.
    Background notifications scheduled on ``self.dispatcher`` are awaited
    after the response has been written.
    """

    endpoint = ""

    def do_GET(self):
        self._dispatch("handle_get")

    def do_POST(self):
        self._dispatch("handle_post")

    def do_OPTIONS(self):
        self.send_response(204)
        self._cors_headers()
        self.end_headers()

    def _cors_headers(self):
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Authorization, Content-Type')

    @property
    def query(self) -> dict:
        """First value of each query string parameter."""
        return {key: values[0] for key, values in parse_qs(urlparse(self.path).query).items()}

    def read_json(self) -> dict:
        content_length = int(self.headers.get('Content-Length', 0))
        raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
        if not raw_body:
            return {}
        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError:
            raise ValidationError("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    async def actor(self) -> AuthUser:
        """Acting agent of the bearer token; raises 401/403 domain errors."""
        return await resolve_actor(bearer_token(self.headers))

    def send_json(self, status: int, payload: dict, correlation_id: str = ""):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        if correlation_id:
            self.send_header(LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id)
        self._cors_headers()
        self.end_headers()
        self.wfile.write(json.dumps(payload, default=str).encode('utf-8'))

    async def _handle(self, method_name: str) -> tuple[int, dict]:
        method = getattr(self, method_name, None)
        if method is None:
            return 405, {"error": "Method not allowed", "code": "MethodNotAllowed"}
        if method_name == "handle_post":
            return await method(self.read_json())
        return await method()

    def _dispatch(self, method_name: str):
        correlation_id = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER) or generate_correlation_id()
        self.dispatcher = NotificationDispatcher()
        loop = asyncio.new_event_loop()
        try:
            with correlation_context(correlation_id):
                try:
                    status, payload = loop.run_until_complete(self._handle(method_name))
                except OpenHouseError as e:
                    log = logger.error if e.status_code >= 500 else logger.warning
                    log(
                        "Request failed",
                        endpoint=self.endpoint,
                        status_code=e.status_code,
                        error=mask_sensitive_data(e.message),
                        error_type=type(e).__name__,
                    )
                    status, payload = e.status_code, e.to_dict()
                except Exception as e:
                    logger.exception("Unhandled error", endpoint=self.endpoint, error=mask_sensitive_data(str(e)))
                    status, payload = 500, {"error": str(e), "code": "InternalError"}

                self.send_json(status, payload, correlation_id)

                if self.dispatcher.pending:
                    loop.run_until_complete(self.dispatcher.drain())
        finally:
            loop.close()
