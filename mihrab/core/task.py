"""
Persistent schedules for background tasks.

Each task owns one row in task_schedules. The row's next_run_at survives restarts;
a row without next_run_at means "run as soon as the task manager picks it up".
All timestamps in the table are naive UTC.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from mihrab.core.db import session_scope
from mihrab.core.models import TaskSchedule

logger = logging.getLogger(__name__)


class TaskType:
    """Schedule kind for tasks."""
    DAILY = "daily"


def _utc_naive_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_hhmm(value: Any) -> Tuple[int, int]:
    """"HH:MM" to (hour, minute). Raises ValueError for anything out of range."""
    parts = str(value).strip().split(":")
    hour = int(parts[0])
    minute = int(parts[1]) if len(parts) > 1 else 0
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hour, minute


def compute_next_run(
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    last_run: Optional[datetime],
) -> datetime:
    """Next run after last_run (naive UTC).

    DAILY times are wall-clock times in the local zone, so a 00:05 refresh happens
    five minutes after local midnight whatever the UTC offset is.
    """
    last_run = last_run or _utc_naive_now()
    if schedule_type == TaskType.DAILY and schedule_config:
        hour, minute = parse_hhmm(schedule_config.get("time", "00:00"))
        local_last = last_run.replace(tzinfo=timezone.utc).astimezone()
        next_local = local_last.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if next_local <= local_last:
            next_local += timedelta(days=1)
        return next_local.astimezone(timezone.utc).replace(tzinfo=None)
    return last_run + timedelta(days=1)


def _schedule_row(session: Session, component_name: str) -> Optional[TaskSchedule]:
    return session.execute(
        select(TaskSchedule).where(TaskSchedule.component_name == component_name)
    ).scalars().first()


def get_next_run_from_db(component_name: str) -> Optional[datetime]:
    """next_run_at for a task, or None when there is no row or it is due immediately."""
    try:
        with session_scope() as session:
            row = _schedule_row(session, component_name)
            return row.next_run_at if row else None
    except Exception as e:
        logger.debug(f"get_next_run_from_db {component_name}: {e}")
        return None


def upsert_task_schedule(
    component_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    next_run_at: Optional[datetime] = None,
) -> None:
    """Create or update a schedule row. An existing next_run_at is only replaced when one is given."""
    now = _utc_naive_now()
    with session_scope() as session:
        row = _schedule_row(session, component_name)
        if row is None:
            session.add(TaskSchedule(
                component_name=component_name,
                schedule_type=schedule_type,
                schedule_config=schedule_config,
                next_run_at=next_run_at,
                created_at=now,
                updated_at=now,
            ))
            return
        if (row.schedule_type, row.schedule_config) != (schedule_type, schedule_config):
            # A changed refresh time takes effect from now rather than after the old slot
            row.next_run_at = compute_next_run(schedule_type, schedule_config, now)
        row.schedule_type = schedule_type
        row.schedule_config = schedule_config
        if next_run_at is not None:
            row.next_run_at = next_run_at
        row.updated_at = now


def update_after_run(component_name: str, error: Optional[str] = None) -> None:
    """Record a run and move next_run_at forward. A failed run keeps its error text."""
    now = _utc_naive_now()
    with session_scope() as session:
        row = _schedule_row(session, component_name)
        if row is None:
            return
        row.last_run_at = now
        row.last_error = error
        row.next_run_at = compute_next_run(row.schedule_type, row.schedule_config, now)
        row.updated_at = now


class BaseTask(ABC):
    """
    Abstract base for background tasks. Subclasses implement run() and call
    update_after_run() when done; the base keeps the schedule row in place.
    """

    def __init__(self, component_name: str, schedule_type: str, schedule_config: Optional[Dict[str, Any]] = None):
        self.component_name = component_name
        self.schedule_type = schedule_type
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_next_run(self, last_run: Optional[datetime] = None) -> datetime:
        return compute_next_run(self.schedule_type, self.schedule_config, last_run)

    def ensure_scheduled(self, next_run_at: Optional[datetime] = None) -> None:
        """Make sure the schedule row exists so the next run survives restarts."""
        upsert_task_schedule(self.component_name, self.schedule_type, self.schedule_config, next_run_at)

    @abstractmethod
    def run(self, **kwargs: Any) -> None:
        pass
