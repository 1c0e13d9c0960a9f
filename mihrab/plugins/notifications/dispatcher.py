"""
Dispatcher boundary: whatever actually delivers a notification at a given instant.

LocalDispatcher keeps pending entries in the database and arms one timer for
the earliest of them. Due rows are deleted before delivery so an id is never
delivered twice.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import delete, select

from mihrab.core.db import session_scope
from .models import PendingNotificationRecord

DELIVERY_TASK = "notification_delivery"


@dataclass(frozen=True)
class PendingNotification:
    id: int
    fire_at: datetime
    title: str
    body: str
    sound: Optional[str] = None
    channel: Optional[str] = None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_record(row: PendingNotificationRecord) -> PendingNotification:
    return PendingNotification(
        id=row.id,
        fire_at=row.fire_at.replace(tzinfo=timezone.utc),
        title=row.title,
        body=row.body,
        sound=row.sound,
        channel=row.channel,
    )


class NotificationDispatcher(ABC):
    """Platform notification service."""

    @abstractmethod
    def request_permission(self) -> bool:
        pass

    @abstractmethod
    def schedule(self, notifications: Iterable[PendingNotification]) -> None:
        """Schedule entries; an id that is already pending is replaced."""
        pass

    @abstractmethod
    def list_pending(self) -> List[int]:
        pass

    @abstractmethod
    def pending(self) -> List[PendingNotification]:
        """Pending entries ordered by fire time."""
        pass

    @abstractmethod
    def cancel(self, ids: Iterable[int]) -> None:
        """Cancel entries by id; unknown ids are ignored."""
        pass


class LocalDispatcher(NotificationDispatcher):
    """In-process delivery backed by the pending_notifications table."""

    def __init__(self, config: Dict[str, Any], task_manager=None, sound_player=None):
        self.config = config
        self.task_manager = task_manager
        self.sound_player = sound_player
        self.listeners: List[Callable[[PendingNotification], None]] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def add_listener(self, callback: Callable[[PendingNotification], None]) -> None:
        self.listeners.append(callback)

    def request_permission(self) -> bool:
        granted = bool(self.config.get("permission_granted", True))
        if not granted:
            self.logger.warning("Notification permission not granted")
        return granted

    def schedule(self, notifications: Iterable[PendingNotification]) -> None:
        entries = list(notifications)
        if not entries:
            return
        with session_scope() as session:
            for entry in entries:
                # merge() replaces a row with the same primary key
                session.merge(PendingNotificationRecord(
                    id=entry.id,
                    fire_at=_to_naive_utc(entry.fire_at),
                    title=entry.title,
                    body=entry.body,
                    sound=entry.sound,
                    channel=entry.channel,
                ))
        self.logger.debug(f"Scheduled {len(entries)} notifications")
        self.arm()

    def list_pending(self) -> List[int]:
        with session_scope() as session:
            return list(session.execute(
                select(PendingNotificationRecord.id).order_by(PendingNotificationRecord.id)
            ).scalars())

    def pending(self) -> List[PendingNotification]:
        """Full pending entries ordered by fire time."""
        with session_scope() as session:
            rows = session.execute(
                select(PendingNotificationRecord).order_by(
                    PendingNotificationRecord.fire_at, PendingNotificationRecord.id
                )
            ).scalars().all()
            return [_from_record(row) for row in rows]

    def cancel(self, ids: Iterable[int]) -> None:
        ids = list(ids)
        if not ids:
            return
        with session_scope() as session:
            session.execute(
                delete(PendingNotificationRecord).where(PendingNotificationRecord.id.in_(ids))
            )
        self.logger.debug(f"Cancelled notifications {ids}")
        self.arm()

    def arm(self, now: Optional[datetime] = None) -> None:
        """Point the delivery timer at the earliest pending entry, or clear it."""
        if self.task_manager is None:
            return
        with session_scope() as session:
            earliest = session.execute(
                select(PendingNotificationRecord.fire_at)
                .order_by(PendingNotificationRecord.fire_at)
                .limit(1)
            ).scalars().first()
        if earliest is None:
            self.task_manager.cancel_task(DELIVERY_TASK)
            return
        now = _to_naive_utc(now or datetime.now(timezone.utc))
        delay = max(0.0, (earliest - now).total_seconds())
        self.task_manager.schedule_task(DELIVERY_TASK, self._on_timer, delay)

    def _on_timer(self) -> None:
        try:
            self.deliver_due()
        finally:
            self.arm()

    def deliver_due(self, now: Optional[datetime] = None) -> List[PendingNotification]:
        """Remove and deliver every entry whose fire time has been reached."""
        cutoff = _to_naive_utc(now or datetime.now(timezone.utc))
        with session_scope() as session:
            rows = session.execute(
                select(PendingNotificationRecord)
                .where(PendingNotificationRecord.fire_at <= cutoff)
                .order_by(PendingNotificationRecord.fire_at, PendingNotificationRecord.id)
            ).scalars().all()
            due = [_from_record(row) for row in rows]
            if due:
                session.execute(
                    delete(PendingNotificationRecord).where(
                        PendingNotificationRecord.id.in_([entry.id for entry in due])
                    )
                )

        for entry in due:
            self._deliver(entry)
        return due

    def _deliver(self, entry: PendingNotification) -> None:
        self.logger.info(f"Notification {entry.id} [{entry.channel}]: {entry.title} - {entry.body}")
        for listener in self.listeners:
            try:
                listener(entry)
            except Exception as e:
                self.logger.error(f"Error in notification listener: {e}")
        if self.sound_player is not None and entry.sound:
            self.sound_player.play(entry.sound)
