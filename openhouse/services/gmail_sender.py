"""Gmail API sender using an agent's OAuth access token."""

import base64
from email.mime.text import MIMEText
from typing import Optional
import httpx

from openhouse.models.notification import GoogleCredentials
from openhouse.utils.config import AppConfig
from openhouse.utils.errors import UpstreamNotificationError
from openhouse.utils.logging import get_structured_logger, mask_email, mask_sensitive_data

logger = get_structured_logger(__name__)

GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"


def build_raw_message(to: str, subject: str, html: str) -> str:
    """RFC 2822 message, base64url encoded without padding as Gmail expects."""
    message = MIMEText(html, "html", "utf-8")
    message["To"] = to
    message["Subject"] = subject
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


class GmailSender:
    """Send HTML email through ``users.messages.send``."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def send_email(self, credentials: GoogleCredentials, to: str, subject: str, html: str) -> str:
        """Send one message and return the Gmail message id."""
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=AppConfig.NOTIFICATION_HTTP_TIMEOUT_SECONDS,
            ) as client:
                response = await client.post(
                    GMAIL_SEND_URL,
                    headers={"Authorization": f"Bearer {credentials.access_token}"},
                    json={"raw": build_raw_message(to, subject, html)},
                )
        except httpx.HTTPError as e:
            raise UpstreamNotificationError(f"Gmail send failed: {e}") from e

        if response.status_code >= 400:
            raise UpstreamNotificationError(
                f"Gmail send failed with status {response.status_code}",
                details={"body": mask_sensitive_data(response.text[:200])},
            )

        message_id = response.json().get("id")
        logger.info("Email sent", to=mask_email(to), subject=subject, message_id=message_id)
        return message_id
