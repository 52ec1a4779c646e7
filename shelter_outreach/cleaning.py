"""Combine raw contact sources into a single deduplicated canonical dataset."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .ingestion.loaders import RawRecord, RawRecordSource, SourceReadError, normalise_keys, read_source
from .models import CanonicalDataset, ContactRecord
from .normalize import clean_city, clean_name, clean_state, clean_text, dedup_key, validate_email, validate_phone

LOGGER = logging.getLogger(__name__)

SourceLike = Union[RawRecordSource, Sequence[RawRecord]]


def normalise_record(raw: Mapping[str, Any]) -> Optional[ContactRecord]:
    """Apply the field rules to one raw row; ``None`` when the row is not admissible."""

    raw = normalise_keys(raw)
    name = clean_name(raw.get("name"))
    email = validate_email(raw.get("email"))
    phone = validate_phone(raw.get("phone"))

    if not email and not phone:
        return None
    if not name:
        return None

    return ContactRecord(
        name=name,
        email=email,
        phone=phone,
        city=clean_city(raw.get("city")),
        state=clean_state(raw.get("state")),
        website=clean_text(raw.get("website") or raw.get("url")),
        facebook=clean_text(raw.get("facebook")),
        type=clean_text(raw.get("type")) or "Shelter",
        notes=clean_text(raw.get("notes")),
    )


def sort_records(records: Iterable[ContactRecord]) -> List[ContactRecord]:
    """Order by state, then name. ``sorted`` is stable so ties keep source order."""

    return sorted(records, key=lambda record: (record.state, record.name))


def clean(sources: Sequence[SourceLike]) -> CanonicalDataset:
    """Normalise, admit, deduplicate and sort the rows of every source.

    Sources are consumed in the order given and the first occurrence of each
    dedup key wins, so callers control precedence through that order. A source
    that cannot be read is logged and skipped; it never aborts the run.
    """

    dataset = CanonicalDataset()
    seen: set[str] = set()
    admitted: List[ContactRecord] = []

    for index, source in enumerate(sources):
        label = _source_label(source, index)
        try:
            rows = _rows_for(source, label)
        except SourceReadError as exc:
            LOGGER.warning("Skipping source %s: %s", label, exc.reason)
            dataset.skipped_sources.append(label)
            continue

        LOGGER.info("  %s: %s rows", label, len(rows))
        dataset.raw_count += len(rows)
        for raw in rows:
            if not isinstance(raw, Mapping):
                dataset.rejected += 1
                continue
            record = normalise_record(raw)
            if record is None:
                dataset.rejected += 1
                continue
            key = dedup_key(record.name, record.email, record.phone)
            if key in seen:
                dataset.duplicates += 1
                continue
            seen.add(key)
            admitted.append(record)

    dataset.records = sort_records(admitted)
    LOGGER.info(
        "After cleaning: %s unique contacts (%s with email, %s with phone)",
        dataset.total,
        dataset.with_email,
        dataset.with_phone,
    )
    return dataset


def _source_label(source: SourceLike, index: int) -> str:
    name = getattr(source, "name", None)
    return str(name) if name else f"source[{index}]"


def _rows_for(source: SourceLike, label: str) -> List[Any]:
    if hasattr(source, "read"):
        return read_source(source)  # type: ignore[arg-type]
    try:
        return list(source)
    except TypeError as exc:
        raise SourceReadError(label, str(exc)) from exc


__all__ = ["clean", "normalise_record", "sort_records"]
