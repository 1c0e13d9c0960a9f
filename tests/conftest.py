# tests/conftest.py
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List

import pytest

from mihrab.core.db import dispose_db, init_db
from mihrab.core.prayers import PrayerName
from mihrab.plugins.notifications.dispatcher import NotificationDispatcher, PendingNotification
from mihrab.plugins.prayer_times.prayer_base import PrayerBackend

# Fixed UTC clock times the fake calculator hands out for every day
FAKE_TIMES = {
    PrayerName.FAJR: time(5, 0),
    PrayerName.DHUHR: time(12, 0),
    PrayerName.ASR: time(15, 30),
    PrayerName.MAGHRIB: time(18, 0),
    PrayerName.ISHA: time(19, 30),
}


class FakeBackend(PrayerBackend):
    """Deterministic calculator: the same five UTC times every day."""

    def __init__(self):
        super().__init__({})
        self.calls: List[date] = []
        self.fail = False

    def compute_times(self, coordinates, day, method):
        if self.fail:
            raise RuntimeError("calculator unavailable")
        self.calls.append(day)
        return {
            prayer: datetime.combine(day, at, tzinfo=timezone.utc)
            for prayer, at in FAKE_TIMES.items()
        }


class FakeDispatcher(NotificationDispatcher):
    """In-memory dispatcher keyed by id."""

    def __init__(self):
        self.entries: Dict[int, PendingNotification] = {}
        self.permission = True
        self.fail_schedule = False
        self.cancel_calls = 0

    def request_permission(self):
        return self.permission

    def schedule(self, notifications):
        if self.fail_schedule:
            raise RuntimeError("dispatcher rejected schedule")
        for n in notifications:
            self.entries[n.id] = n

    def list_pending(self):
        return sorted(self.entries)

    def cancel(self, ids):
        self.cancel_calls += 1
        for i in ids:
            self.entries.pop(i, None)

    def pending(self):
        return sorted(self.entries.values(), key=lambda n: (n.fire_at, n.id))


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database file per test."""
    dispose_db()
    init_db(db_url=f"sqlite:///{tmp_path / 'test.db'}")
    yield
    dispose_db()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_dispatcher():
    return FakeDispatcher()


@pytest.fixture
def notification_config():
    return {
        "permission_granted": True,
        "horizon_days": 7,
        "sound": "notifications.wav",
        "channel": "prayers_channel",
        "title_template": "It is time for {prayer}",
        "body_template": "Rise to your prayer, {prayer} has begun.",
        "timezone": "UTC",
    }


@pytest.fixture
def mihrab_app(tmp_path, db, fake_backend, fake_dispatcher):
    """Application wired to the fakes, without timers, watcher or API thread."""
    from mihrab.core.app import MihrabApp

    config_file = tmp_path / "config.yaml"
    app = MihrabApp(
        config_path=str(config_file),
        start_services=False,
        backend=fake_backend,
        dispatcher=fake_dispatcher,
    )
    yield app
    app.stop()


def full_day():
    return {prayer.value: True for prayer in PrayerName}


def day_without(*missed):
    names = {p.value for p in missed}
    return {prayer.value: prayer.value not in names for prayer in PrayerName}


def week_of(records_by_offset, today):
    """Build a log mapping from {days_before_today: record}."""
    return {
        (today - timedelta(days=offset)).isoformat(): record
        for offset, record in records_by_offset.items()
    }
