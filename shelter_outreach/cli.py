"""Command line interface for cleaning contact data and running outreach campaigns."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from .cleaning import clean
from .clock import SystemClock
from .config import AppConfig, ConfigurationError, build_app_config, load_configuration, load_environment
from .factory import build_sender
from .ingestion.exporters import export_dataset, find_latest_snapshot, write_snapshot
from .ingestion.loaders import FileRecordSource, discover_sources, load_snapshot
from .models import CampaignCompleted, ContactRecord
from .runlog import DailyRunLog
from .scheduler import run_campaign, select_batch
from .senders.templates import render_outreach
from .state import JsonStateRepository, PersistenceError
from .stats import collect_stats, render_dashboard

LOGGER = logging.getLogger(__name__)

TEST_CONTACT_NAME = "Austin Pets Alive"


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Clean shelter contact data and run rate-limited outreach campaigns",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a configuration file (YAML or JSON); defaults are used when omitted",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    clean_parser = subparsers.add_parser("clean", help="Combine, validate and deduplicate raw sources")
    clean_parser.add_argument("sources", nargs="*", help="Explicit source files; defaults to the output directory")
    clean_parser.add_argument("--output-dir", default=None, help="Directory holding scraped CSVs and snapshots")
    clean_parser.add_argument("--seed", default=None, help="Static seed list appended after scraped sources")
    clean_parser.add_argument("--export", default=None, help="Also export the dataset to this CSV/XLSX path")

    run_parser = subparsers.add_parser("run", help="Send the next outreach batch")
    run_parser.add_argument("--force", action="store_true", help="Ignore the weekday/hour sending window")
    run_parser.add_argument("--limit", type=int, default=None, help="Override the daily quota for this run")

    preview_parser = subparsers.add_parser("preview", help="Show the batch the next run would send")
    preview_parser.add_argument("--limit", type=int, default=None, help="Override the daily quota")

    stats_parser = subparsers.add_parser("stats", help="Show campaign progress")
    stats_parser.add_argument("--json", action="store_true", help="Print a JSON summary instead of the dashboard")

    test_parser = subparsers.add_parser("send-test", help="Send the outreach template to a single address")
    test_parser.add_argument("address", help="Recipient of the test message")
    test_parser.add_argument("--name", default=TEST_CONTACT_NAME, help="Organisation name used in the template")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        config = build_app_config(load_configuration(args.config) if args.config else None)
        handler = _COMMANDS[args.command]
        return handler(args, config)
    except ConfigurationError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1
    except PersistenceError:
        LOGGER.exception("Could not persist campaign state; check the run log before the next run")
        return 1


def _cmd_clean(args: argparse.Namespace, config: AppConfig) -> int:
    output_dir = Path(args.output_dir) if args.output_dir else config.paths.output_dir
    if args.sources:
        sources = [FileRecordSource(path) for path in args.sources]
    else:
        seed = Path(args.seed) if args.seed else config.paths.seed_file
        sources = discover_sources(output_dir, seed)
    LOGGER.info("Found %s sources to process", len(sources))

    dataset = clean(sources)
    csv_path, json_path = write_snapshot(dataset, output_dir, date.today())
    if args.export:
        export_dataset(dataset.records, args.export)

    counts = dataset.counts()
    print(f"Total raw records: {counts['raw']}")
    print(f"After cleaning:    {counts['total']} unique contacts")
    print(f"  With email:      {counts['with_email']}")
    print(f"  With phone:      {counts['with_phone']}")
    if dataset.skipped_sources:
        print(f"  Skipped sources: {', '.join(dataset.skipped_sources)}")
    print(f"Saved to {csv_path} and {json_path}")
    return 0


def _load_contacts(config: AppConfig) -> Optional[tuple[Path, List[ContactRecord]]]:
    snapshot = find_latest_snapshot(config.paths.output_dir)
    if snapshot is None:
        LOGGER.error("No CLEAN_*.csv snapshot found in %s; run the clean command first", config.paths.output_dir)
        return None
    LOGGER.info("Loading %s", snapshot.name)
    return snapshot, load_snapshot(snapshot)


def _cmd_run(args: argparse.Namespace, config: AppConfig) -> int:
    loaded = _load_contacts(config)
    if loaded is None:
        return 1
    _, contacts = loaded

    load_environment()
    sender = build_sender(config.sender)
    repository = JsonStateRepository(config.paths.state_file)
    store = repository.load()
    campaign = config.campaign.with_overrides(force=True if args.force else None, quota=args.limit)

    result = run_campaign(
        contacts,
        store,
        SystemClock(),
        sender,
        campaign,
        repository=repository,
        run_log=DailyRunLog(config.paths.daily_log_dir),
    )
    print(result.summary())
    if isinstance(result, CampaignCompleted):
        print(f"Total contacted all-time: {len(store)}")
        print(f"Log: {result.log_path}")
    return 0


def _cmd_preview(args: argparse.Namespace, config: AppConfig) -> int:
    loaded = _load_contacts(config)
    if loaded is None:
        return 1
    _, contacts = loaded

    store = JsonStateRepository(config.paths.state_file).load()
    campaign = config.campaign.with_overrides(quota=args.limit)
    batch, eligible = select_batch(contacts, store, campaign)
    print(f"Eligible: {len(eligible)}  Next batch: {len(batch)}")
    for position, contact in enumerate(batch, start=1):
        message = render_outreach(contact)
        print(f"[{position}] {contact.email:<40} {message.subject}")
    return 0


def _cmd_stats(args: argparse.Namespace, config: AppConfig) -> int:
    snapshot = find_latest_snapshot(config.paths.output_dir)
    contacts = load_snapshot(snapshot) if snapshot else []
    store = JsonStateRepository(config.paths.state_file).load()
    entries = DailyRunLog(config.paths.daily_log_dir).load_entries()

    stats = collect_stats(contacts, store, entries, snapshot=snapshot)
    if args.json:
        print(json.dumps(stats.as_dict(), indent=2))
    else:
        print(render_dashboard(stats))
    return 0


def _cmd_send_test(args: argparse.Namespace, config: AppConfig) -> int:
    load_environment()
    sender = build_sender(config.sender)
    contact = ContactRecord(name=args.name, email=args.address)
    try:
        sender.send(contact)
    except Exception as exc:
        LOGGER.error("Test send to %s failed: %s", args.address, exc)
        return 1
    print(f"Test email sent to {args.address}")
    return 0


_COMMANDS = {
    "clean": _cmd_clean,
    "run": _cmd_run,
    "preview": _cmd_preview,
    "stats": _cmd_stats,
    "send-test": _cmd_send_test,
}


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
