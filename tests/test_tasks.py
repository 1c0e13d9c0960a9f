from datetime import datetime, timedelta

import pytest

from mihrab.core.models import get_all_task_schedules
from mihrab.core.task import TaskType, compute_next_run, get_next_run_from_db, parse_hhmm
from mihrab.plugins.notifications.task import COMPONENT_NAME, NotificationRefreshTask


def test_parse_hhmm():
    assert parse_hhmm("00:05") == (0, 5)
    assert parse_hhmm("7") == (7, 0)
    with pytest.raises(ValueError):
        parse_hhmm("25:00")
    with pytest.raises(ValueError):
        parse_hhmm("noon")


def test_daily_next_run_is_within_a_day():
    last = datetime(2024, 3, 10, 12, 0)
    next_run = compute_next_run(TaskType.DAILY, {"time": "00:05"}, last)

    assert last < next_run <= last + timedelta(days=1)


def test_invalid_refresh_time_falls_back():
    task = NotificationRefreshTask({"refresh_time": "99:99"}, lambda: 0)
    assert task.schedule_config == {"time": "00:05"}


def test_new_schedule_runs_immediately_then_moves_forward(db):
    calls = []
    task = NotificationRefreshTask({"refresh_time": "03:30"}, lambda: calls.append(1) or 35)
    task.ensure_scheduled()
    assert get_next_run_from_db(COMPONENT_NAME) is None

    task.run()

    assert calls == [1]
    row = get_all_task_schedules()[0]
    assert row["component_name"] == COMPONENT_NAME
    assert row["last_error"] is None
    assert row["next_run_at"] > row["last_run_at"]


def test_failed_refresh_keeps_error(db):
    def broken():
        raise RuntimeError("calculator down")

    task = NotificationRefreshTask({}, broken)
    task.ensure_scheduled()
    task.run()

    row = get_all_task_schedules()[0]
    assert row["last_error"] == "calculator down"
    assert row["next_run_at"] is not None
