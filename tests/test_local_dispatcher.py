from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from mihrab.core.task_manager import TaskManager
from mihrab.plugins.notifications.dispatcher import DELIVERY_TASK, LocalDispatcher, PendingNotification

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def _entry(notification_id, minutes, title="Fajr"):
    return PendingNotification(
        id=notification_id,
        fire_at=NOW + timedelta(minutes=minutes),
        title=title,
        body="body",
        sound="notifications.wav",
        channel="prayers_channel",
    )


def test_schedule_list_and_replace(db):
    dispatcher = LocalDispatcher({})
    dispatcher.schedule([_entry(1, 10), _entry(2, 20)])
    dispatcher.schedule([_entry(1, 30, title="Isha")])

    assert dispatcher.list_pending() == [1, 2]
    pending = dispatcher.pending()
    assert [n.id for n in pending] == [2, 1]
    assert pending[1].title == "Isha"
    assert pending[1].fire_at == NOW + timedelta(minutes=30)


def test_cancel_ignores_unknown_ids(db):
    dispatcher = LocalDispatcher({})
    dispatcher.schedule([_entry(1, 10), _entry(2, 20)])
    dispatcher.cancel([2, 42])

    assert dispatcher.list_pending() == [1]


def test_deliver_due_runs_once_per_id(db):
    player = MagicMock()
    listener = MagicMock()
    dispatcher = LocalDispatcher({}, sound_player=player)
    dispatcher.add_listener(listener)
    dispatcher.schedule([_entry(1, -1), _entry(2, 0), _entry(3, 5)])

    delivered = dispatcher.deliver_due(NOW)

    assert [n.id for n in delivered] == [1, 2]
    assert dispatcher.list_pending() == [3]
    assert listener.call_count == 2
    player.play.assert_called_with("notifications.wav")
    assert dispatcher.deliver_due(NOW) == []


def test_failing_listener_does_not_block_delivery(db):
    good = MagicMock()
    dispatcher = LocalDispatcher({})
    dispatcher.add_listener(MagicMock(side_effect=RuntimeError("boom")))
    dispatcher.add_listener(good)
    dispatcher.schedule([_entry(1, -5)])

    dispatcher.deliver_due(NOW)

    good.assert_called_once()
    assert dispatcher.list_pending() == []


def test_delivery_timer_follows_pending_set(db):
    task_manager = TaskManager()
    try:
        dispatcher = LocalDispatcher({}, task_manager=task_manager)
        dispatcher.schedule([
            PendingNotification(1, datetime.now(timezone.utc) + timedelta(hours=1), "Fajr", "body"),
        ])
        assert task_manager.is_scheduled(DELIVERY_TASK)

        dispatcher.cancel([1])
        assert not task_manager.is_scheduled(DELIVERY_TASK)
    finally:
        task_manager.stop()


def test_permission_comes_from_config():
    assert LocalDispatcher({"permission_granted": True}).request_permission() is True
    assert LocalDispatcher({"permission_granted": False}).request_permission() is False
