"""
Channel senders for queued notifications.

Each sender turns a Notification row into one HTTP call to its provider and
reports the outcome as a SendResult. Transport failures are returned, not
raised, so the dispatcher can record them and schedule a retry.
"""

import time
from dataclasses import dataclass
from html import escape

import httpx
from django.conf import settings

from apps.core.logging import get_logger
from apps.core.utils import normalize_phone
from apps.notifications.models import Notification

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class SendResult:
    """Result of a single delivery attempt."""

    success: bool
    http_status: int | None = None
    duration_ms: int = 0
    error: str = ""


def format_whatsapp_number(phone: str, country_code: str | None = None) -> str:
    """
    Turn a stored phone number into the gateway's international format.

    A leading trunk "0" is replaced by the country code; numbers without the
    country code get it prepended.
    """
    country_code = country_code or settings.WHATSAPP_DEFAULT_COUNTRY_CODE
    digits = normalize_phone(phone)
    if not digits:
        return ""
    if digits.startswith("0"):
        return country_code + digits[1:]
    if not digits.startswith(country_code):
        return country_code + digits
    return digits


def render_email_html(message: str) -> str:
    """Wrap a plain-text message in a minimal HTML body."""
    body = escape(message).replace("\n", "<br>")
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<p style="font-size: 16px; line-height: 1.6;">{body}</p>'
        '<p style="color: #6b7280; font-size: 12px;">'
        "This message was sent automatically. Please do not reply."
        "</p></div>"
    )


class NotificationSender:
    """Base class for channel senders."""

    channel: str = ""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout or settings.NOTIFICATION_SEND_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        raise NotImplementedError

    def build_request(self, notification: Notification) -> tuple[str, dict, dict]:
        """Return (url, headers, json body) for the provider call."""
        raise NotImplementedError

    def send(self, notification: Notification) -> SendResult:
        if not self.is_configured():
            return SendResult(success=False, error=f"{self.channel} sender not configured")

        url, headers, body = self.build_request(notification)
        start_time = time.monotonic()

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=body, headers=headers)
        except httpx.TimeoutException:
            return SendResult(
                success=False,
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error=f"Request timed out after {self.timeout}s",
            )
        except httpx.HTTPError as e:
            return SendResult(
                success=False,
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error=str(e),
            )

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if 200 <= response.status_code < 300:
            return SendResult(success=True, http_status=response.status_code, duration_ms=duration_ms)

        return SendResult(
            success=False,
            http_status=response.status_code,
            duration_ms=duration_ms,
            error=_provider_error(response),
        )


def _provider_error(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {response.status_code}"


class ResendEmailSender(NotificationSender):
    """Email through the Resend HTTP API."""

    channel = Notification.Channel.EMAIL

    def is_configured(self) -> bool:
        return bool(settings.RESEND_API_KEY)

    def build_request(self, notification: Notification) -> tuple[str, dict, dict]:
        headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}
        body = {
            "from": settings.RESEND_FROM_EMAIL,
            "to": notification.recipient_email,
            "subject": notification.subject or "Appointment notification",
            "html": render_email_html(notification.message),
            "text": notification.message,
        }
        return RESEND_API_URL, headers, body


class WhatsAppSender(NotificationSender):
    """WhatsApp text messages through an Evolution-style HTTP gateway."""

    channel = Notification.Channel.WHATSAPP

    def is_configured(self) -> bool:
        return bool(
            settings.WHATSAPP_API_URL and settings.WHATSAPP_API_KEY and settings.WHATSAPP_INSTANCE
        )

    def build_request(self, notification: Notification) -> tuple[str, dict, dict]:
        base_url = settings.WHATSAPP_API_URL.rstrip("/")
        url = f"{base_url}/message/sendText/{settings.WHATSAPP_INSTANCE}"
        headers = {"apikey": settings.WHATSAPP_API_KEY}
        body = {
            "number": format_whatsapp_number(notification.recipient_phone),
            "text": notification.message,
        }
        return url, headers, body


SENDERS: dict[str, type[NotificationSender]] = {
    Notification.Channel.EMAIL: ResendEmailSender,
    Notification.Channel.WHATSAPP: WhatsAppSender,
}


def get_sender(channel: str) -> NotificationSender:
    """Sender instance for a channel."""
    try:
        return SENDERS[channel]()
    except KeyError:
        raise ValueError(f"Unknown notification channel: {channel!r}") from None
