"""Writers for the canonical dataset snapshots."""
from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Iterable, List, MutableMapping, Optional, Sequence, Tuple, Union

import pandas as pd

from ..models import CSV_HEADERS, CanonicalDataset, ContactRecord
from ..state import PersistenceError, atomic_write

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

SNAPSHOT_PREFIX = "CLEAN_shelters_"
MAX_SNAPSHOTS_PER_DAY = 99

# Columns that existing tooling expects to be quoted on every row.
_ALWAYS_QUOTED = {"name", "city", "notes"}
_COLUMNS = [header.lower() for header in CSV_HEADERS]


def snapshot_paths(output_dir: PathLike, day: date, run: int = 1) -> Tuple[Path, Path]:
    """Return the CSV and JSON snapshot paths for the ``run``-th clean of ``day``.

    Repeat runs on the same day get ``_02``, ``_03`` and so on, which sort
    after the date-only name and before the next day.
    """

    stem = f"{SNAPSHOT_PREFIX}{day.isoformat()}"
    if run > 1:
        stem = f"{stem}_{run:02d}"
    directory = Path(output_dir)
    return directory / f"{stem}.csv", directory / f"{stem}.json"


def find_latest_snapshot(output_dir: PathLike) -> Optional[Path]:
    directory = Path(output_dir)
    if not directory.is_dir():
        return None
    candidates = sorted(directory.glob("CLEAN_*.csv"), reverse=True)
    return candidates[0] if candidates else None


def write_snapshot(dataset: CanonicalDataset, output_dir: PathLike, day: date) -> Tuple[Path, Path]:
    """Persist ``dataset`` as a new dated CSV snapshot plus its JSON mirror.

    Existing snapshots are never rewritten. The JSON mirror is written first so
    a CSV snapshot, which is what :func:`find_latest_snapshot` picks, always has
    its complete pair.
    """

    for run in range(1, MAX_SNAPSHOTS_PER_DAY + 1):
        csv_path, json_path = snapshot_paths(output_dir, day, run)
        if not csv_path.exists() and not json_path.exists():
            break
    else:
        raise PersistenceError(f"No free snapshot name for {day.isoformat()} in '{output_dir}'")

    try:
        atomic_write(json_path, render_json(dataset.records))
        atomic_write(csv_path, render_csv(dataset.records))
    except OSError as exc:
        raise PersistenceError(f"Could not write snapshot '{csv_path}': {exc}") from exc
    LOGGER.info("Wrote %s records to %s and %s", dataset.total, csv_path, json_path)
    return csv_path, json_path


def render_csv(records: Iterable[ContactRecord]) -> str:
    """Serialise records in the snapshot CSV layout (no trailing newline)."""

    lines = [",".join(CSV_HEADERS)]
    for record in records:
        cells = [
            _format_cell(value, always_quote=column in _ALWAYS_QUOTED)
            for column, value in zip(_COLUMNS, record.as_row())
        ]
        lines.append(",".join(cells))
    return "\n".join(lines)


def render_json(records: Iterable[ContactRecord]) -> str:
    return json.dumps([record.as_dict() for record in records], indent=2, ensure_ascii=False)


def _format_cell(value: str, *, always_quote: bool) -> str:
    text = value or ""
    if always_quote or any(char in text for char in (",", '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def dataset_to_dataframe(records: Sequence[ContactRecord]) -> pd.DataFrame:
    """Convert contact records into a :class:`pandas.DataFrame` with snapshot headers."""

    return pd.DataFrame([record.as_row() for record in records], columns=CSV_HEADERS)


def export_dataset(
    records: Sequence[ContactRecord],
    path: PathLike,
    *,
    sheet_name: str = "Contacts",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write contact records to an ad-hoc CSV, TSV or Excel file."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(dataset_to_dataframe(records), output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


def records_by_state(records: Iterable[ContactRecord]) -> List[Tuple[str, int]]:
    """Return ``(state, count)`` pairs, busiest state first."""

    frame = dataset_to_dataframe(list(records))
    if frame.empty:
        return []
    states = frame["State"].replace("", "Unknown")
    counts = states.value_counts(sort=False)
    ordered = sorted(counts.items(), key=lambda item: (-int(item[1]), str(item[0])))
    return [(str(state), int(count)) for state, count in ordered]


__all__ = [
    "SNAPSHOT_PREFIX",
    "snapshot_paths",
    "find_latest_snapshot",
    "write_snapshot",
    "render_csv",
    "render_json",
    "dataset_to_dataframe",
    "export_dataset",
    "records_by_state",
]
