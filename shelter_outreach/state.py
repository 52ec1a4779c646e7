"""Durable record of which contacts have already received outreach."""
from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PersistenceError(RuntimeError):
    """Raised when campaign state or the run log cannot be read or written."""


@dataclass
class OutreachStateStore:
    """In-memory view of the contacted set and the last scheduler run.

    The contacted set only ever grows: there is no removal API.
    ``emails`` keeps first-contact order, which is what gets persisted.
    """

    emails: List[str] = field(default_factory=list)
    last_run: Optional[str] = None
    _index: set = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered: List[str] = []
        for email in self.emails:
            normalised = _normalise_email(email)
            if normalised and normalised not in self._index:
                self._index.add(normalised)
                ordered.append(normalised)
        self.emails = ordered

    def __len__(self) -> int:
        return len(self.emails)

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and self.is_contacted(email)

    @property
    def contacted_set(self) -> frozenset:
        return frozenset(self._index)

    def is_contacted(self, email: str) -> bool:
        return _normalise_email(email) in self._index

    def record_contacted(self, email: str) -> bool:
        """Add ``email``; returns ``False`` when it was already present."""

        normalised = _normalise_email(email)
        if not normalised or normalised in self._index:
            return False
        self._index.add(normalised)
        self.emails.append(normalised)
        return True

    def mark_run(self, timestamp: datetime) -> None:
        """Store ``timestamp`` as UTC with a ``Z`` suffix; naive values are taken as local time."""
        self.last_run = utc_timestamp(timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {"emails": list(self.emails), "lastRun": self.last_run}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "OutreachStateStore":
        emails = payload.get("emails") or []
        if not isinstance(emails, list):
            raise PersistenceError("State file field 'emails' must be a list")
        last_run = payload.get("lastRun")
        return cls(emails=[str(email) for email in emails], last_run=str(last_run) if last_run else None)


class JsonStateRepository:
    """Loads and atomically commits an :class:`OutreachStateStore` as JSON."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

    def load(self) -> OutreachStateStore:
        if not self.path.exists():
            LOGGER.debug("No state file at %s; starting empty", self.path)
            return OutreachStateStore()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read state file '{self.path}': {exc}") from exc
        if not isinstance(payload, dict):
            raise PersistenceError(f"State file '{self.path}' does not contain an object")
        return OutreachStateStore.from_dict(payload)

    def commit(self, store: OutreachStateStore) -> None:
        """Replace the persisted state with ``store`` in a single rename."""

        text = json.dumps(store.to_dict(), indent=2)
        try:
            atomic_write(self.path, text)
        except OSError as exc:
            raise PersistenceError(f"Could not write state file '{self.path}': {exc}") from exc
        LOGGER.debug("Committed %s contacted emails to %s", len(store), self.path)


def atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to a temporary sibling, fsync it and rename it over ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(text)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(temp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(temp_name)
        raise


def utc_timestamp(timestamp: datetime) -> str:
    return timestamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _normalise_email(email: str) -> str:
    return (email or "").strip().lower()


__all__ = ["PersistenceError", "OutreachStateStore", "JsonStateRepository", "atomic_write", "utc_timestamp"]
