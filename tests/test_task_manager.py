import threading
import time

from mihrab.core.task_manager import TaskManager


def test_same_name_reschedule_keeps_only_last():
    manager = TaskManager()
    calls = []
    done = threading.Event()
    try:
        manager.schedule_task("debounced", lambda: calls.append("first"), 0.2)
        manager.schedule_task("debounced", lambda: (calls.append("second"), done.set()), 0.2)

        assert done.wait(2)
        time.sleep(0.3)
        assert calls == ["second"]
        assert not manager.is_scheduled("debounced")
    finally:
        manager.stop()


def test_cancelled_repeating_timer_stops():
    manager = TaskManager()
    ticks = []
    try:
        manager.schedule_task("tick", lambda: ticks.append(1), 0.05, one_time=False)
        time.sleep(0.3)
        assert manager.cancel_task("tick") is True
        seen = len(ticks)
        time.sleep(0.3)

        assert seen > 0
        assert len(ticks) <= seen + 1
        assert not manager.is_scheduled("tick")
    finally:
        manager.stop()


def test_cancel_unknown_task():
    manager = TaskManager()
    assert manager.cancel_task("missing") is False


def test_failing_callback_is_contained():
    manager = TaskManager()
    done = threading.Event()

    def boom():
        done.set()
        raise RuntimeError("boom")

    try:
        manager.schedule_task("boom", boom, 0)
        assert done.wait(2)
        time.sleep(0.1)
        assert not manager.is_scheduled("boom")
    finally:
        manager.stop()


def test_registered_task_runs_now():
    manager = TaskManager()
    runs = []
    manager.register_task("refresh", lambda: runs.append(1))
    manager.run_task_now("refresh")
    manager.run_task_now("unknown")

    assert runs == [1]
