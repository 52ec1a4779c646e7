"""Contact cleaning and rate-limited outreach scheduling for shelter partnerships."""

from . import ingestion, models, senders  # noqa: F401
from .cleaning import clean  # noqa: F401
from .models import (
    CampaignCompleted,
    CampaignSkipped,
    CanonicalDataset,
    ContactRecord,
    RunLogEntry,
    RunResult,
    SkipReason,
)  # noqa: F401
from .scheduler import run_campaign, select_batch  # noqa: F401
from .state import JsonStateRepository, OutreachStateStore, PersistenceError  # noqa: F401

__all__ = [
    "ContactRecord",
    "CanonicalDataset",
    "RunLogEntry",
    "RunResult",
    "SkipReason",
    "CampaignCompleted",
    "CampaignSkipped",
    "OutreachStateStore",
    "JsonStateRepository",
    "PersistenceError",
    "clean",
    "run_campaign",
    "select_batch",
    "ingestion",
    "senders",
]
