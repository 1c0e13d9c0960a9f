from datetime import date

from mihrab.core.prayers import PrayerName, empty_record
from mihrab.plugins.prayer_log.service import LogStore


def test_unwritten_date_reads_all_false(db):
    store = LogStore()
    assert store.get_record(date(2024, 1, 1)) == empty_record()
    assert store.dates() == []


def test_toggle_creates_day_and_flips_one_prayer(db):
    store = LogStore()
    record = store.toggle(date(2024, 1, 1), PrayerName.ASR)

    assert record[PrayerName.ASR] is True
    assert sum(record.values()) == 1
    assert store.get_record("2024-01-01") == record
    assert store.dates() == ["2024-01-01"]


def test_double_toggle_restores_previous_value(db):
    store = LogStore()
    store.toggle("2024-01-02", PrayerName.FAJR)
    store.toggle("2024-01-02", PrayerName.FAJR)

    assert store.get_record("2024-01-02") == empty_record()
    # The day stays recorded even though nothing is completed
    assert store.dates() == ["2024-01-02"]


def test_snapshot_holds_every_recorded_day(db):
    store = LogStore()
    store.toggle("2024-01-03", PrayerName.ISHA)
    store.toggle("2024-01-01", PrayerName.FAJR)

    snapshot = store.snapshot()
    assert set(snapshot) == {"2024-01-01", "2024-01-03"}
    assert snapshot["2024-01-01"][PrayerName.FAJR] is True
    assert snapshot["2024-01-03"][PrayerName.ISHA] is True
    assert store.dates() == ["2024-01-01", "2024-01-03"]
