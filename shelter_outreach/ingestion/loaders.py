"""Raw record sources feeding the cleaning pipeline."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional, Protocol, Sequence, Union

import pandas as pd

from ..models import RECORD_FIELDS, ContactRecord

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
RawRecord = Mapping[str, Any]

_TABULAR_SUFFIXES = {".csv", ".tsv"}
_EXCEL_SUFFIXES = {".xls", ".xlsx", ".xlsm", ".xlsb"}
_JSON_SUFFIXES = {".json"}

# Generated files living next to the scraped sources.
_GENERATED_PREFIXES = ("ALL_", "CLEAN_")


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


class SourceReadError(RuntimeError):
    """Raised when a single raw source cannot be read."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Could not read source '{source}': {reason}")
        self.source = source
        self.reason = reason


class RawRecordSource(Protocol):
    """Anything that yields loosely typed field mappings."""

    name: str

    def read(self) -> Iterable[RawRecord]:  # pragma: no cover - runtime protocol
        """Return the raw rows provided by this source."""


class InMemorySource:
    """Source wrapping rows that are already in memory (API payloads, fixtures)."""

    def __init__(self, name: str, rows: Sequence[RawRecord]) -> None:
        self.name = name
        self._rows = list(rows)

    def read(self) -> List[Dict[str, Any]]:
        return [normalise_keys(row) for row in self._rows]

    def __repr__(self) -> str:
        return f"InMemorySource({self.name!r}, rows={len(self._rows)})"


class FileRecordSource:
    """Source backed by a CSV, TSV, Excel or JSON file."""

    def __init__(
        self,
        path: PathLike,
        *,
        sheet_name: Union[str, int] = 0,
        loader_kwargs: Optional[MutableMapping[str, Any]] = None,
    ) -> None:
        self.path = Path(path)
        self.name = self.path.name
        self._sheet_name = sheet_name
        self._loader_kwargs = dict(loader_kwargs or {})

    def read(self) -> List[Dict[str, Any]]:
        suffix = self.path.suffix.lower()
        if suffix in _JSON_SUFFIXES:
            return _read_json_rows(self.path)

        dataframe = _read_dataframe(self.path, sheet_name=self._sheet_name, loader_kwargs=self._loader_kwargs)
        rows: List[Dict[str, Any]] = []
        for record in dataframe.to_dict(orient="records"):
            row = normalise_keys(record)
            if _row_is_empty(row):
                continue
            rows.append(row)
        return rows

    def __repr__(self) -> str:
        return f"FileRecordSource({str(self.path)!r})"


def read_source(source: RawRecordSource) -> List[Dict[str, Any]]:
    """Read every row from ``source``, wrapping failures in :class:`SourceReadError`."""

    label = getattr(source, "name", repr(source))
    try:
        return [dict(row) for row in source.read()]
    except SourceReadError:
        raise
    except Exception as exc:
        raise SourceReadError(label, str(exc)) from exc


def discover_sources(output_dir: PathLike, seed_file: Optional[PathLike] = None) -> List[FileRecordSource]:
    """Return the scraped CSV files in ``output_dir`` followed by the optional seed list.

    Files produced by earlier combine or clean runs (``ALL_*`` / ``CLEAN_*``) are
    ignored. Scraped files come first, in filename order, so that freshly
    scraped contact details win over the static seed list during deduplication.
    """

    directory = Path(output_dir)
    sources: List[FileRecordSource] = []
    if directory.is_dir():
        for path in sorted(directory.glob("*.csv")):
            if path.name.startswith(_GENERATED_PREFIXES):
                continue
            sources.append(FileRecordSource(path))
    else:
        LOGGER.warning("Output directory %s does not exist", directory)

    if seed_file is not None:
        seed_path = Path(seed_file)
        if seed_path.exists():
            sources.append(FileRecordSource(seed_path))
        else:
            LOGGER.debug("Seed list %s not found", seed_path)
    return sources


def load_snapshot(path: PathLike) -> List[ContactRecord]:
    """Read a canonical ``CLEAN_*`` CSV snapshot back into contact records."""

    dataframe = _read_dataframe(Path(path))
    records: List[ContactRecord] = []
    for record in dataframe.to_dict(orient="records"):
        row = normalise_keys(record)
        if _row_is_empty(row):
            continue
        values = {key: row.get(key, "") for key in RECORD_FIELDS}
        if not values["type"]:
            values["type"] = "Shelter"
        records.append(ContactRecord(**values))
    return records


def _read_dataframe(
    path: Path,
    *,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    # Keep every cell as text: phone numbers and ZIP-like values must not be coerced.
    loader_kwargs.setdefault("dtype", str)
    loader_kwargs.setdefault("keep_default_na", False)
    suffix = path.suffix.lower()

    if suffix in _TABULAR_SUFFIXES:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        loader_kwargs.setdefault("encoding", "utf-8-sig")
        loader_kwargs.setdefault("skipinitialspace", True)
        return pd.read_csv(path, **loader_kwargs)

    if suffix in _EXCEL_SUFFIXES:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        return pd.read_excel(path, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path.suffix}")


def _read_json_rows(path: Path) -> List[Dict[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("records", payload.get("shelters", []))
    if not isinstance(payload, list):
        raise ValueError("JSON sources must contain an array of objects")
    rows: List[Dict[str, Any]] = []
    for item in payload:
        if not isinstance(item, Mapping):
            raise ValueError(f"Unexpected JSON row of type {type(item).__name__}")
        row = normalise_keys(item)
        if not _row_is_empty(row):
            rows.append(row)
    return rows


def _normalise_key(value: Any) -> str:
    return str(value).strip().strip('"').strip().lower()


def normalise_keys(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Lower-case and unquote column names; the first column wins on a clash."""

    normalised: Dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue
        name = _normalise_key(key)
        if not name or name in normalised:
            continue
        normalised[name] = _clean_cell(value)
    return normalised


def _clean_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


def _row_is_empty(row: Mapping[str, Any]) -> bool:
    return all(value == "" or value is None for value in row.values())


__all__ = [
    "RawRecord",
    "RawRecordSource",
    "InMemorySource",
    "FileRecordSource",
    "SourceReadError",
    "UnsupportedFileTypeError",
    "read_source",
    "normalise_keys",
    "discover_sources",
    "load_snapshot",
]
