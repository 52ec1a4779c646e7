import json
from datetime import datetime

import pytest

from shelter_outreach.clock import SystemClock
from shelter_outreach.config import CampaignConfig
from shelter_outreach.models import CampaignCompleted, CampaignSkipped, ContactRecord, SkipReason
from shelter_outreach.rate_limit import DelayPolicy, RateLimiter
from shelter_outreach.runlog import DailyRunLog
from shelter_outreach.scheduler import eligible_queue, is_within_window, run_campaign, select_batch
from shelter_outreach.senders.base import SendError
from shelter_outreach.state import JsonStateRepository, OutreachStateStore, PersistenceError, utc_timestamp

MONDAY_MORNING = datetime(2026, 3, 2, 9, 15)
SATURDAY_MORNING = datetime(2026, 3, 7, 9, 15)
MONDAY_EVENING = datetime(2026, 3, 2, 16, 0)


class FixedClock(SystemClock):
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


class FakeSender:
    def __init__(self, fail_for=()) -> None:
        self.fail_for = set(fail_for)
        self.calls = []

    def send(self, contact: ContactRecord):
        self.calls.append(contact.email)
        if contact.email in self.fail_for:
            raise SendError("HTTP 400: bad recipient")
        return "ok"


class FailingRepository:
    def commit(self, store) -> None:
        raise PersistenceError("disk full")


class FakeTime:
    def __init__(self) -> None:
        self.current = 0.0
        self.sleeps = []

    def monotonic(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


def _contacts(count: int):
    return [ContactRecord(name=f"Shelter {index}", email=f"s{index}@x.org", state="TX") for index in range(count)]


@pytest.fixture()
def paths(tmp_path):
    return JsonStateRepository(tmp_path / "sent_emails.json"), DailyRunLog(tmp_path / "daily_logs")


def _config(**overrides) -> CampaignConfig:
    values = {"daily_quota": 20, "inter_message_delay": 0.0}
    values.update(overrides)
    return CampaignConfig(**values)


def test_window_is_half_open() -> None:
    config = _config()
    assert is_within_window(SystemClock(), datetime(2026, 3, 2, 7, 0), config)
    assert is_within_window(SystemClock(), datetime(2026, 3, 2, 15, 59), config)
    assert not is_within_window(SystemClock(), MONDAY_EVENING, config)
    assert not is_within_window(SystemClock(), datetime(2026, 3, 2, 6, 59), config)
    assert not is_within_window(SystemClock(), SATURDAY_MORNING, config)


def test_scenario_quota_of_one(paths) -> None:
    repository, run_log = paths
    dataset = [
        ContactRecord(name="A Shelter", email="a@x.org"),
        ContactRecord(name="B Shelter", email="b@x.org"),
    ]
    store = repository.load()

    result = run_campaign(
        dataset,
        store,
        FixedClock(MONDAY_MORNING),
        FakeSender(),
        _config(daily_quota=1),
        repository=repository,
        run_log=run_log,
    )

    assert isinstance(result, CampaignCompleted)
    assert (result.sent, result.failed, result.remaining) == (1, 0, 1)
    assert repository.load().contacted_set == frozenset({"a@x.org"})


def test_saturday_is_skipped_without_side_effects(paths, tmp_path) -> None:
    repository, run_log = paths
    store = OutreachStateStore()
    sender = FakeSender()

    result = run_campaign(
        _contacts(3),
        store,
        FixedClock(SATURDAY_MORNING),
        sender,
        _config(),
        repository=repository,
        run_log=run_log,
    )

    assert isinstance(result, CampaignSkipped)
    assert result.reason is SkipReason.OUTSIDE_WINDOW
    assert sender.calls == []
    assert store.last_run is None
    assert not repository.path.exists()
    assert not run_log.directory.exists()


def test_force_override_bypasses_gate(paths) -> None:
    repository, run_log = paths
    sender = FakeSender()

    result = run_campaign(
        _contacts(2),
        OutreachStateStore(),
        FixedClock(SATURDAY_MORNING),
        sender,
        _config(force_override_gate=True),
        repository=repository,
        run_log=run_log,
    )

    assert isinstance(result, CampaignCompleted)
    assert sender.calls == ["s0@x.org", "s1@x.org"]


def test_exhausted_queue_is_skipped(paths) -> None:
    repository, run_log = paths
    store = OutreachStateStore(emails=["s0@x.org", "S1@x.org"])
    dataset = _contacts(2) + [ContactRecord(name="Phone Only", phone="(512) 555-0100")]

    result = run_campaign(
        dataset,
        store,
        FixedClock(MONDAY_MORNING),
        FakeSender(),
        _config(),
        repository=repository,
        run_log=run_log,
    )

    assert isinstance(result, CampaignSkipped)
    assert result.reason is SkipReason.QUEUE_EXHAUSTED
    assert not repository.path.exists()


@pytest.mark.parametrize("quota, size", [(0, 5), (3, 5), (5, 5), (20, 4)])
def test_attempts_are_bounded_by_quota(paths, quota, size) -> None:
    repository, run_log = paths
    sender = FakeSender()

    result = run_campaign(
        _contacts(size),
        OutreachStateStore(),
        FixedClock(MONDAY_MORNING),
        sender,
        _config(daily_quota=quota),
        repository=repository,
        run_log=run_log,
    )

    assert len(sender.calls) == min(quota, size)
    assert result.remaining == size - min(quota, size)


def test_failures_are_logged_and_stay_eligible(paths) -> None:
    repository, run_log = paths
    store = OutreachStateStore(emails=["old@x.org"])
    sender = FakeSender(fail_for={"s1@x.org"})

    result = run_campaign(
        _contacts(3),
        store,
        FixedClock(MONDAY_MORNING),
        sender,
        _config(),
        repository=repository,
        run_log=run_log,
    )

    assert (result.sent, result.failed, result.remaining) == (2, 1, 0)
    persisted = repository.load()
    assert persisted.contacted_set == {"old@x.org", "s0@x.org", "s2@x.org"}
    assert persisted.contacted_set >= {"old@x.org"}
    assert persisted.last_run == utc_timestamp(MONDAY_MORNING)

    log = json.loads((run_log.directory / "2026-03-02.json").read_text(encoding="utf-8"))
    assert [entry["status"] for entry in log] == ["sent", "failed", "sent"]
    assert log[1]["error"] == "HTTP 400: bad recipient"

    batch, eligible = select_batch(_contacts(3), persisted, _config())
    assert [contact.email for contact in batch] == ["s1@x.org"]
    assert eligible == batch


def test_persistence_failure_propagates(tmp_path) -> None:
    with pytest.raises(PersistenceError):
        run_campaign(
            _contacts(1),
            OutreachStateStore(),
            FixedClock(MONDAY_MORNING),
            FakeSender(),
            _config(),
            repository=FailingRepository(),
            run_log=DailyRunLog(tmp_path),
        )


def test_delay_applies_between_sends_only(paths) -> None:
    repository, run_log = paths
    fake_time = FakeTime()
    limiter = RateLimiter(DelayPolicy(3.0), monotonic=fake_time.monotonic, sleep=fake_time.sleep)

    run_campaign(
        _contacts(3),
        OutreachStateStore(),
        FixedClock(MONDAY_MORNING),
        FakeSender(),
        _config(inter_message_delay=3.0),
        repository=repository,
        run_log=run_log,
        limiter=limiter,
    )

    assert fake_time.sleeps == [3.0, 3.0]


def test_eligible_queue_preserves_order_and_skips_duplicates() -> None:
    contacts = [
        ContactRecord(name="B", email="dup@x.org", state="AZ"),
        ContactRecord(name="C", email="", phone="(512) 555-0100", state="AZ"),
        ContactRecord(name="A", email="DUP@x.org", state="TX"),
        ContactRecord(name="D", email="d@x.org", state="TX"),
    ]

    queue = eligible_queue(contacts, OutreachStateStore())

    assert [contact.name for contact in queue] == ["B", "D"]
