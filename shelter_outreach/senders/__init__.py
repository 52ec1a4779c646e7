"""Send capabilities used by the outreach scheduler."""

from .base import SendCapability, SenderIdentity, SendError  # noqa: F401
from .sample import RecordingSender  # noqa: F401
from .sendgrid import SendGridSender  # noqa: F401
from .templates import OutreachMessage, TemplateSettings, render_outreach  # noqa: F401

__all__ = [
    "SendCapability",
    "SenderIdentity",
    "SendError",
    "RecordingSender",
    "SendGridSender",
    "OutreachMessage",
    "TemplateSettings",
    "render_outreach",
]
