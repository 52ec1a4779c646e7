"""Append-only audit log of scheduler invocations, one JSON file per run."""
from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Iterable, List, Union

from .models import RunLogEntry
from .state import PersistenceError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


class DailyRunLog:
    """Writes run logs named after the invocation date.

    Existing files are never rewritten: a second run on the same calendar day
    gets a numbered sibling (``2026-03-02-2.json``).
    """

    def __init__(self, directory: PathLike) -> None:
        self.directory = Path(directory)

    def write(self, entries: Iterable[RunLogEntry], day: date) -> Path:
        payload = json.dumps([entry.as_dict() for entry in entries], indent=2, ensure_ascii=False)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for path in self._candidate_paths(day):
                try:
                    with path.open("x", encoding="utf-8") as handle:
                        handle.write(payload)
                except FileExistsError:
                    continue
                LOGGER.debug("Run log written to %s", path)
                return path
        except OSError as exc:
            raise PersistenceError(f"Could not write run log in '{self.directory}': {exc}") from exc
        raise PersistenceError(f"No free run log name for {day.isoformat()} in '{self.directory}'")

    def _candidate_paths(self, day: date):
        stem = day.isoformat()
        yield self.directory / f"{stem}.json"
        for suffix in range(2, 1000):
            yield self.directory / f"{stem}-{suffix}.json"

    def load_entries(self) -> List[RunLogEntry]:
        """Return every logged entry, newest file first; unreadable files are skipped."""

        entries: List[RunLogEntry] = []
        if not self.directory.is_dir():
            return entries
        for path in sorted(self.directory.glob("*.json"), reverse=True):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                LOGGER.warning("Ignoring unreadable run log %s: %s", path, exc)
                continue
            if not isinstance(data, list):
                LOGGER.warning("Ignoring run log %s: expected a list", path)
                continue
            entries.extend(RunLogEntry.from_dict(item) for item in data if isinstance(item, dict))
        return entries


__all__ = ["DailyRunLog"]
