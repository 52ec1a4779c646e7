"""Send capabilities that never leave the process."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..models import ContactRecord
from .base import SendError
from .templates import OutreachMessage, render_outreach

LOGGER = logging.getLogger(__name__)


class RecordingSender:
    """Renders and records each message instead of delivering it.

    Addresses listed in ``fail_for`` raise :class:`SendError`, which makes the
    sender handy for rehearsing a campaign end to end.
    """

    name = "recording"

    def __init__(self, fail_for: Optional[Iterable[str]] = None) -> None:
        self._fail_for = {address.strip().lower() for address in (fail_for or [])}
        self.sent: List[ContactRecord] = []
        self.messages: List[OutreachMessage] = []

    def send(self, contact: ContactRecord) -> Optional[str]:
        if contact.email.lower() in self._fail_for:
            raise SendError(f"Simulated failure for {contact.email}")
        message = render_outreach(contact)
        self.sent.append(contact)
        self.messages.append(message)
        LOGGER.info("[DRY RUN] Would send '%s' to %s", message.subject, contact.email)
        return f"recording-{len(self.sent)}"
