"""Interface shared by every send capability."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..models import ContactRecord


class SendError(RuntimeError):
    """Raised by a send capability when a message could not be delivered to the provider."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SenderIdentity:
    """Who the outreach appears to come from."""

    from_email: str
    from_name: str = ""
    reply_to: Optional[str] = None


class SendCapability(Protocol):
    """Delivers one outreach message; raises on failure."""

    def send(self, contact: ContactRecord) -> Optional[str]:  # pragma: no cover - runtime protocol
        """Send the outreach message to ``contact.email``; may return a provider message id."""


__all__ = ["SendCapability", "SendError", "SenderIdentity"]
