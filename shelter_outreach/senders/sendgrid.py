"""SendGrid v3 mail-send transport."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ..config import require_env
from ..models import ContactRecord
from .base import SenderIdentity, SendError
from .templates import OutreachMessage, TemplateSettings, render_outreach

LOGGER = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
API_KEY_ENV = "SENDGRID_API_KEY"

_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class SendGridSender:
    """Sends the outreach template through the SendGrid HTTP API.

    Rate limiting and 5xx responses are retried with exponential backoff;
    anything else that is not a 2xx raises :class:`SendError`.
    """

    name = "sendgrid"

    def __init__(
        self,
        from_email: str,
        from_name: str = "",
        reply_to: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        template: Optional[Dict[str, Any]] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.identity = SenderIdentity(from_email=from_email, from_name=from_name, reply_to=reply_to)
        self._api_key = api_key or require_env(API_KEY_ENV)
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._template = TemplateSettings(**(template or {}))
        self._session = session or requests.Session()
        self._sleep = sleep

    def render(self, contact: ContactRecord) -> OutreachMessage:
        return render_outreach(contact, self._template)

    def build_payload(self, recipient: str, message: OutreachMessage) -> Dict[str, Any]:
        sender: Dict[str, str] = {"email": self.identity.from_email}
        if self.identity.from_name:
            sender["name"] = self.identity.from_name
        payload: Dict[str, Any] = {
            "personalizations": [{"to": [{"email": recipient}]}],
            "from": sender,
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.text},
                {"type": "text/html", "value": message.html},
            ],
        }
        if self.identity.reply_to:
            payload["reply_to"] = {"email": self.identity.reply_to}
        return payload

    def send(self, contact: ContactRecord) -> Optional[str]:
        if not contact.email:
            raise SendError(f"{contact.display_name()} has no email address")
        payload = self.build_payload(contact.email, self.render(contact))
        return self._post(payload)

    def _post(self, payload: Dict[str, Any]) -> Optional[str]:
        headers = {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}
        delay = self._backoff_seconds
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.post(SENDGRID_URL, json=payload, headers=headers, timeout=self._timeout)
            except requests.RequestException as exc:
                raise SendError(f"SendGrid request failed: {exc}") from exc

            if 200 <= response.status_code < 300:
                return response.headers.get("X-Message-Id")
            if response.status_code in _RETRYABLE_STATUSES and attempt < self._max_retries:
                LOGGER.debug("SendGrid returned %s, retrying in %.1fs", response.status_code, delay)
                self._sleep(delay)
                delay *= 2
                continue
            raise SendError(
                f"SendGrid returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        raise SendError("SendGrid: exhausted retries")  # pragma: no cover - loop always returns or raises


__all__ = ["SendGridSender", "SENDGRID_URL", "API_KEY_ENV"]
