"""Selects and dispatches the next outreach batch, then records the outcome."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Tuple

from .clock import Clock
from .config import CampaignConfig
from .models import CampaignCompleted, CampaignSkipped, ContactRecord, RunLogEntry, RunResult, SkipReason
from .rate_limit import DelayPolicy, RateLimiter
from .runlog import DailyRunLog
from .senders.base import SendCapability
from .state import OutreachStateStore

LOGGER = logging.getLogger(__name__)


class StateRepository(Protocol):
    def commit(self, store: OutreachStateStore) -> None:  # pragma: no cover - runtime protocol
        ...


def is_within_window(clock: Clock, timestamp: datetime, config: CampaignConfig) -> bool:
    """True when ``timestamp`` falls on an allowed weekday inside ``[start, end)``."""

    start, end = config.allowed_hours
    if clock.weekday(timestamp) not in config.allowed_weekdays:
        return False
    return start <= clock.hour(timestamp) < end


def eligible_queue(contacts: Iterable[ContactRecord], store: OutreachStateStore) -> List[ContactRecord]:
    """Contacts with an email address that has never been messaged, in dataset order.

    Each address appears at most once so a batch never mails the same inbox twice.
    """

    queue: List[ContactRecord] = []
    queued: set[str] = set()
    for contact in contacts:
        email = contact.email.strip().lower()
        if "@" not in email or email in queued:
            continue
        if store.is_contacted(email):
            continue
        queued.add(email)
        queue.append(contact)
    return queue


def select_batch(
    contacts: Iterable[ContactRecord], store: OutreachStateStore, config: CampaignConfig
) -> Tuple[List[ContactRecord], List[ContactRecord]]:
    """Return ``(batch, eligible)`` where ``batch`` is the head of the eligible queue."""

    eligible = eligible_queue(contacts, store)
    return eligible[: config.daily_quota], eligible


def run_campaign(
    dataset: Iterable[ContactRecord],
    store: OutreachStateStore,
    clock: Clock,
    sender: SendCapability,
    config: CampaignConfig,
    *,
    repository: StateRepository,
    run_log: DailyRunLog,
    limiter: Optional[RateLimiter] = None,
) -> RunResult:
    """Run one scheduler invocation.

    Skips (outside the window, nothing left to send) have no side effects.
    Otherwise every batch member is attempted once; failures are logged and
    left eligible for a later run. The store is committed exactly once after
    the batch, and a failure to persist it or the run log propagates as
    :class:`~shelter_outreach.state.PersistenceError`.
    """

    started = clock.now()
    if not config.force_override_gate and not is_within_window(clock, started, config):
        start, end = config.allowed_hours
        LOGGER.info(
            "Outside sending window at %s (weekdays %s, %02d:00-%02d:00); use --force to override",
            started.isoformat(timespec="minutes"),
            sorted(config.allowed_weekdays),
            start,
            end,
        )
        return CampaignSkipped(reason=SkipReason.OUTSIDE_WINDOW, checked_at=started)

    batch, eligible = select_batch(dataset, store, config)
    LOGGER.info("Previously contacted: %s; eligible now: %s", len(store), len(eligible))
    if not eligible:
        LOGGER.info("Every contact in the dataset has already been contacted")
        return CampaignSkipped(reason=SkipReason.QUEUE_EXHAUSTED, checked_at=started)

    limiter = limiter or RateLimiter(DelayPolicy(config.inter_message_delay))
    entries: List[RunLogEntry] = []
    sent = failed = 0

    LOGGER.info("Sending %s emails this run", len(batch))
    for position, contact in enumerate(batch, start=1):
        limiter.acquire()
        LOGGER.info("[%s/%s] %s (%s)", position, len(batch), contact.name, contact.email)
        try:
            sender.send(contact)
        except Exception as exc:
            failed += 1
            LOGGER.warning("Send to %s failed: %s", contact.email, exc)
            entries.append(_entry(contact, "failed", clock.now(), error=str(exc) or exc.__class__.__name__))
            continue
        sent += 1
        store.record_contacted(contact.email)
        entries.append(_entry(contact, "sent", clock.now()))

    finished = clock.now()
    store.mark_run(finished)
    repository.commit(store)
    log_path = run_log.write(entries, finished.date())

    result = CampaignCompleted(
        sent=sent,
        failed=failed,
        remaining=len(eligible) - len(batch),
        entries=entries,
        log_path=str(log_path),
    )
    LOGGER.info("%s (total contacted all-time: %s)", result.summary(), len(store))
    return result


def _entry(contact: ContactRecord, status: str, timestamp: datetime, *, error: Optional[str] = None) -> RunLogEntry:
    return RunLogEntry(
        name=contact.name,
        email=contact.email,
        status=status,
        timestamp=timestamp.isoformat(),
        error=error,
    )


__all__ = ["is_within_window", "eligible_queue", "select_batch", "run_campaign"]
