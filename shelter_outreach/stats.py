"""Progress overview of the outreach campaign."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .ingestion.exporters import records_by_state
from .models import ContactRecord, RunLogEntry
from .state import OutreachStateStore

TOP_STATES = 10
LIST_LIMIT = 10


@dataclass
class OutreachStats:
    snapshot: Optional[str]
    last_run: Optional[str]
    total: int
    contacted_all_time: int
    contacted: List[ContactRecord] = field(default_factory=list)
    remaining: List[ContactRecord] = field(default_factory=list)
    by_state: List[Tuple[str, int]] = field(default_factory=list)
    recent: List[RunLogEntry] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "snapshot": self.snapshot,
            "lastRun": self.last_run,
            "total": self.total,
            "contacted": self.contacted_all_time,
            "remaining": len(self.remaining),
            "byState": [{"state": state, "count": count} for state, count in self.by_state],
        }


def collect_stats(
    records: Sequence[ContactRecord],
    store: OutreachStateStore,
    log_entries: Sequence[RunLogEntry] = (),
    *,
    snapshot: Optional[Path] = None,
) -> OutreachStats:
    candidates = [record for record in records if "@" in record.email]
    contacted = [record for record in candidates if store.is_contacted(record.email)]
    remaining = [record for record in candidates if not store.is_contacted(record.email)]
    recent = sorted(
        (entry for entry in log_entries if entry.succeeded),
        key=lambda entry: entry.timestamp,
        reverse=True,
    )[:LIST_LIMIT]
    return OutreachStats(
        snapshot=snapshot.name if snapshot else None,
        last_run=store.last_run,
        total=len(candidates),
        contacted_all_time=len(store),
        contacted=contacted,
        remaining=remaining,
        by_state=records_by_state(candidates),
        recent=recent,
    )


def render_dashboard(stats: OutreachStats) -> str:
    lines: List[str] = []
    lines.append(f"Database:  {stats.snapshot or 'None'}")
    lines.append(f"Last run:  {stats.last_run or 'Never'}")
    lines.append("")
    lines.append("SUMMARY")
    lines.append(f"  Total contacts found: {stats.total:>6}")
    lines.append(f"  Contacted:            {stats.contacted_all_time:>6}")
    lines.append(f"  Remaining:            {len(stats.remaining):>6}")
    lines.append("")

    lines.append("CONTACTS BY STATE")
    for state, count in stats.by_state[:TOP_STATES]:
        bar = "#" * min(20, round(count / 2))
        lines.append(f"  {state:<12} {count:>3}  {bar}")
    if len(stats.by_state) > TOP_STATES:
        lines.append(f"  ... and {len(stats.by_state) - TOP_STATES} more states")
    lines.append("")

    lines.append("RECENTLY CONTACTED")
    if not stats.recent:
        lines.append("  No outreach logs found yet.")
    for entry in stats.recent:
        lines.append(f"  {entry.timestamp[:10]}  {entry.name[:30]}")
    lines.append("")

    lines.append("NEXT UP (QUEUE)")
    if not stats.remaining:
        lines.append("  All contacts have been reached.")
    for record in stats.remaining[:LIST_LIMIT]:
        lines.append(f"  {(record.state or '??'):<2}  {record.name[:35]}")
    if len(stats.remaining) > LIST_LIMIT:
        lines.append(f"  ... and {len(stats.remaining) - LIST_LIMIT} more in queue")
    lines.append("")

    lines.append("ALL CONTACTED")
    if not stats.contacted:
        lines.append("  No contacts reached yet.")
    for record in stats.contacted:
        lines.append(f"  {(record.state or '??'):<2}  {record.name[:35]}")
    return "\n".join(lines)


__all__ = ["OutreachStats", "collect_stats", "render_dashboard"]
