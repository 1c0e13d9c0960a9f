import threading
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from mihrab.core.prayers import DEFAULT_COORDINATES, Coordinates, PrayerName
from mihrab.core.task_manager import TaskManager
from mihrab.plugins.prayer_times.methods import CalculationMethod
from mihrab.plugins.prayer_times.prayer_base import AdhanpyBackend, AladhanBackend, create_backend
from mihrab.plugins.prayer_times.service import (
    NextPrayer,
    NextPrayerTicker,
    next_prayer,
    times_for_day,
)

METHOD = CalculationMethod.MUSLIM_WORLD_LEAGUE
COORDS = Coordinates(30.0444, 31.2357)


def test_next_prayer_same_day(fake_backend):
    now = datetime(2024, 3, 10, 13, 0, tzinfo=timezone.utc)
    upcoming = next_prayer(fake_backend, COORDS, METHOD, now)

    assert upcoming.prayer == PrayerName.ASR
    assert upcoming.remaining == timedelta(hours=2, minutes=30)


def test_next_prayer_after_isha_is_tomorrows_fajr(fake_backend):
    now = datetime(2024, 3, 10, 21, 0, tzinfo=timezone.utc)
    upcoming = next_prayer(fake_backend, COORDS, METHOD, now)

    assert upcoming.prayer == PrayerName.FAJR
    assert upcoming.time == datetime(2024, 3, 11, 5, 0, tzinfo=timezone.utc)
    assert upcoming.remaining == timedelta(hours=8)


def test_missing_coordinates_use_default(fake_backend):
    calls = []
    fake_backend.compute_times = lambda coords, day, method: calls.append(coords) or {}
    times_for_day(fake_backend, None, date(2024, 3, 10), METHOD)
    assert calls == [DEFAULT_COORDINATES]


def test_describe():
    at = datetime(2024, 3, 10, 5, 0, tzinfo=timezone.utc)
    assert NextPrayer(PrayerName.FAJR, at, timedelta(hours=2, minutes=5)).describe() == "Fajr in 2h 05m"
    assert NextPrayer(PrayerName.ASR, at, timedelta(minutes=3, seconds=9)).describe() == "Asr in 3m 09s"
    assert NextPrayer(PrayerName.ISHA, at, timedelta(seconds=-2)).describe() == "Isha in 0s"


def test_ticker_recomputes_until_stopped():
    manager = TaskManager()
    ticked = threading.Event()
    seen = []
    at = datetime(2024, 3, 10, 5, 0, tzinfo=timezone.utc)

    def on_tick(upcoming):
        seen.append(upcoming)
        if len(seen) >= 2:
            ticked.set()

    ticker = NextPrayerTicker(manager, lambda: NextPrayer(PrayerName.FAJR, at, timedelta(minutes=1)), on_tick, interval=0.05)
    try:
        ticker.start()
        assert ticker.running
        assert ticked.wait(2)
        ticker.stop()
        assert not ticker.running
        assert ticker.latest is not None
    finally:
        manager.stop()


def _aladhan_response():
    response = MagicMock()
    response.json.return_value = {
        "data": {
            "timings": {
                "Fajr": "04:31 (EET)",
                "Sunrise": "06:01",
                "Dhuhr": "12:01",
                "Asr": "15:25",
                "Maghrib": "18:02",
                "Isha": "19:20",
            },
            "meta": {"timezone": "Africa/Cairo"},
        }
    }
    response.raise_for_status.return_value = None
    return response


def test_aladhan_parses_and_caches(tmp_path):
    backend = AladhanBackend({"cache_dir": str(tmp_path), "madhab": "Hanafi"})
    day = date(2024, 3, 10)

    with patch("mihrab.plugins.prayer_times.prayer_base.requests.get", return_value=_aladhan_response()) as get:
        times = backend.compute_times(COORDS, day, CalculationMethod.EGYPTIAN)
        again = backend.compute_times(COORDS, day, CalculationMethod.EGYPTIAN)

    assert get.call_count == 1
    url = get.call_args.args[0]
    params = get.call_args.kwargs["params"]
    assert url.endswith("/10-03-2024")
    assert params["method"] == 5
    assert params["school"] == 1

    assert times == again
    assert times[PrayerName.FAJR] == datetime(2024, 3, 10, 4, 31, tzinfo=ZoneInfo("Africa/Cairo"))
    assert times[PrayerName.ISHA].hour == 19
    assert list(times) == list(PrayerName)


def test_aladhan_http_error_propagates(tmp_path):
    backend = AladhanBackend({"cache_dir": str(tmp_path)})
    response = MagicMock()
    response.raise_for_status.side_effect = RuntimeError("503")
    with patch("mihrab.plugins.prayer_times.prayer_base.requests.get", return_value=response):
        with pytest.raises(RuntimeError):
            backend.compute_times(COORDS, date(2024, 3, 10), METHOD)


def test_create_backend():
    assert isinstance(create_backend({}), AdhanpyBackend)
    with pytest.raises(ValueError):
        create_backend({"backend": "nope"})


def test_adhanpy_times_are_ordered_and_zoned():
    backend = AdhanpyBackend({"timezone": "Africa/Cairo"})
    times = backend.compute_times(COORDS, date(2024, 3, 10), METHOD)

    ordered = [times[prayer] for prayer in PrayerName]
    assert ordered == sorted(ordered)
    assert all(t.tzinfo is not None for t in ordered)
    assert times[PrayerName.DHUHR].astimezone(ZoneInfo("Africa/Cairo")).hour in (11, 12)
