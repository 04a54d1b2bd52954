"""Django email backend for the Resend HTTP API.

Messages go through Django's normal mail framework (`send_mail`,
`EmailMultiAlternatives`); this backend turns each one into a
`POST /emails` call with httpx.
"""

import logging

import httpx
from django.conf import settings
from django.core.mail.backends.base import BaseEmailBackend

logger = logging.getLogger(__name__)


class ResendError(Exception):
    """Error returned by the Resend API."""

    def __init__(self, status_code: int, message: str, name: str | None = None):
        self.status_code = status_code
        self.message = message
        self.name = name or "unknown"
        super().__init__(message)


def _handle_response(response: httpx.Response) -> dict:
    """Return the decoded body of a successful response, raise otherwise."""
    if response.is_success:
        return response.json()

    try:
        error_data = response.json()
    except ValueError:
        raise ResendError(response.status_code, response.text or "Unknown error")
    raise ResendError(
        response.status_code,
        error_data.get("message", "Unknown error"),
        name=error_data.get("name"),
    )


class ResendEmailBackend(BaseEmailBackend):
    """Send email through Resend.

    Settings: RESEND_API_KEY, RESEND_API_URL, RESEND_TIMEOUT.
    """

    def __init__(self, api_key=None, api_url=None, timeout=None, fail_silently=False, **kwargs):
        super().__init__(fail_silently=fail_silently, **kwargs)
        self.api_key = api_key or settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout or settings.RESEND_TIMEOUT
        self._client: httpx.Client | None = None

    def open(self):
        if self._client is not None:
            return False
        self._client = httpx.Client(
            base_url=self.api_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        return True

    def close(self):
        if self._client is None:
            return
        try:
            self._client.close()
        finally:
            self._client = None

    def send_messages(self, email_messages):
        if not email_messages:
            return 0
        if not self.api_key:
            logger.error("RESEND_API_KEY is not configured; email not sent")
            if not self.fail_silently:
                raise ResendError(0, "RESEND_API_KEY is not configured")
            return 0

        new_connection = self.open()
        sent = 0
        try:
            for message in email_messages:
                if self._send(message):
                    sent += 1
        finally:
            if new_connection:
                self.close()
        return sent

    def _payload(self, message) -> dict:
        payload = {
            "from": message.from_email or settings.DEFAULT_FROM_EMAIL,
            "to": list(message.to),
            "subject": message.subject,
            "text": message.body,
        }
        if message.cc:
            payload["cc"] = list(message.cc)
        if message.bcc:
            payload["bcc"] = list(message.bcc)
        if message.reply_to:
            payload["reply_to"] = list(message.reply_to)
        for content, mimetype in getattr(message, "alternatives", []):
            if mimetype == "text/html":
                payload["html"] = content
        return payload

    def _send(self, message) -> bool:
        if not message.recipients():
            return False
        try:
            response = self._client.post("/emails", json=self._payload(message))
            data = _handle_response(response)
        except (httpx.RequestError, ResendError) as e:
            logger.error(
                "Resend delivery failed: %s",
                e,
                extra={"recipients": message.recipients(), "subject": message.subject},
            )
            if not self.fail_silently:
                raise
            return False

        logger.info(
            "Email sent via Resend",
            extra={"resend_id": data.get("id"), "subject": message.subject},
        )
        return True
