from datetime import date

import pytest

from mihrab.plugins.tasbih.service import DHIKR_LIST, DhikrSession, TasbihCounter, find_dhikr

DAY = date(2024, 1, 5)


def test_record_updates_day_and_total(db):
    counter = TasbihCounter()
    assert counter.record(DAY) == 1
    assert counter.record(DAY, 10) == 11
    counter.record(date(2024, 1, 6), 4)

    assert counter.count_for(DAY) == 11
    assert counter.count_for("2024-01-06") == 4
    assert counter.count_for("2024-01-07") == 0
    assert counter.total() == 15


def test_record_rejects_non_positive(db):
    counter = TasbihCounter()
    with pytest.raises(ValueError):
        counter.record(DAY, 0)
    assert counter.total() == 0


def test_session_stops_at_target(db):
    counter = TasbihCounter()
    session = DhikrSession(counter, lambda: DAY, index=find_dhikr(6))
    assert session.dhikr.target == 10

    taps = [session.tap() for _ in range(12)]

    assert taps.count(True) == 10
    assert session.completed
    assert session.progress() == 100.0
    assert counter.count_for(DAY) == 10


def test_session_navigation_wraps_and_resets(db):
    session = DhikrSession(TasbihCounter(), lambda: DAY)
    session.tap()
    assert session.previous() == DHIKR_LIST[-1]
    assert session.count == 0
    assert session.next() == DHIKR_LIST[0]

    session.tap()
    session.reset()
    assert session.count == 0
    assert session.progress() == 0


def test_find_dhikr():
    assert find_dhikr(1) == 0
    assert find_dhikr(99) is None
