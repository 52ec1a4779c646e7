"""Utilities for importing raw contact sources and exporting canonical snapshots."""

from .exporters import (
    export_dataset,
    find_latest_snapshot,
    records_by_state,
    render_csv,
    render_json,
    snapshot_paths,
    write_snapshot,
)
from .loaders import (
    FileRecordSource,
    InMemorySource,
    RawRecordSource,
    SourceReadError,
    UnsupportedFileTypeError,
    discover_sources,
    load_snapshot,
    read_source,
)

__all__ = [
    "FileRecordSource",
    "InMemorySource",
    "RawRecordSource",
    "SourceReadError",
    "UnsupportedFileTypeError",
    "discover_sources",
    "load_snapshot",
    "read_source",
    "export_dataset",
    "find_latest_snapshot",
    "records_by_state",
    "render_csv",
    "render_json",
    "snapshot_paths",
    "write_snapshot",
]
