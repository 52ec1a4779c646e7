"""Data models shared by the cleaning pipeline, the state store and the scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# Header row of the canonical CSV snapshot, in column order.
CSV_HEADERS = ["Name", "Email", "Phone", "City", "State", "Website", "Facebook", "Type", "Notes"]

# Field names of the JSON snapshot, in key order.
RECORD_FIELDS = ["name", "email", "phone", "city", "state", "website", "facebook", "type", "notes"]


# --- Contact Models ---

@dataclass(slots=True)
class ContactRecord:
    """A normalised organisation contact admitted into the canonical dataset."""

    name: str
    email: str = ""
    phone: str = ""
    city: str = ""
    state: str = ""
    website: str = ""
    facebook: str = ""
    type: str = "Shelter"
    notes: str = ""

    def display_name(self) -> str:
        """Return a readable name for logs and the dashboard."""
        return self.name or "(Unnamed Contact)"

    @property
    def has_email(self) -> bool:
        return bool(self.email)

    @property
    def has_phone(self) -> bool:
        return bool(self.phone)

    def as_dict(self) -> Dict[str, str]:
        """Return the lower-case keyed mapping used by the JSON snapshot."""
        return {key: getattr(self, key) for key in RECORD_FIELDS}

    def as_row(self) -> List[str]:
        """Return the values in :data:`CSV_HEADERS` order."""
        return [getattr(self, key) for key in RECORD_FIELDS]


@dataclass
class CanonicalDataset:
    """Deduplicated, validated and sorted output of one cleaning run."""

    records: List[ContactRecord] = field(default_factory=list)
    raw_count: int = 0
    rejected: int = 0
    duplicates: int = 0
    skipped_sources: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def with_email(self) -> int:
        return sum(1 for record in self.records if record.email)

    @property
    def with_phone(self) -> int:
        return sum(1 for record in self.records if record.phone)

    def counts(self) -> Dict[str, int]:
        """Summary counts used for reporting."""
        return {
            "raw": self.raw_count,
            "total": self.total,
            "with_email": self.with_email,
            "with_phone": self.with_phone,
            "rejected": self.rejected,
            "duplicates": self.duplicates,
        }


# --- Campaign Models ---

class SkipReason(str, Enum):
    """Why a scheduler invocation returned without dispatching anything."""

    OUTSIDE_WINDOW = "outside_window"
    QUEUE_EXHAUSTED = "queue_exhausted"


@dataclass(slots=True)
class RunLogEntry:
    """Outcome of one dispatch attempt, as written to the daily run log."""

    name: str
    email: str
    status: str
    timestamp: str
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "sent"

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "email": self.email, "status": self.status}
        if self.error is not None:
            payload["error"] = self.error
        payload["timestamp"] = self.timestamp
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RunLogEntry":
        return cls(
            name=str(payload.get("name", "")),
            email=str(payload.get("email", "")),
            status=str(payload.get("status", "")),
            timestamp=str(payload.get("timestamp", "")),
            error=payload.get("error"),
        )


@dataclass
class CampaignSkipped:
    """A scheduler invocation that was a no-op."""

    reason: SkipReason
    checked_at: Optional[datetime] = None

    status = "skipped"

    def summary(self) -> str:
        if self.reason is SkipReason.OUTSIDE_WINDOW:
            return "Skipped: outside the allowed sending window"
        return "Skipped: every contact in the dataset has already been contacted"


@dataclass
class CampaignCompleted:
    """A scheduler invocation that dispatched a batch."""

    sent: int
    failed: int
    remaining: int
    entries: List[RunLogEntry] = field(default_factory=list)
    log_path: Optional[str] = None

    status = "completed"

    @property
    def attempted(self) -> int:
        return self.sent + self.failed

    def summary(self) -> str:
        return f"Completed: sent={self.sent} failed={self.failed} remaining={self.remaining}"


RunResult = Union[CampaignCompleted, CampaignSkipped]


__all__ = [
    "CSV_HEADERS",
    "RECORD_FIELDS",
    "ContactRecord",
    "CanonicalDataset",
    "SkipReason",
    "RunLogEntry",
    "CampaignSkipped",
    "CampaignCompleted",
    "RunResult",
]
