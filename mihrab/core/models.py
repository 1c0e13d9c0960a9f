"""
Core DB models: namespaced key-value settings and task schedule (next_run persistence).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import Column, String, DateTime, Text, JSON, select

from mihrab.core.db import Base, session_scope


def _utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Setting(Base):
    """One persisted preference. value is JSON so coordinates and flags round-trip as-is."""
    __tablename__ = "settings"

    namespace = Column(String(64), primary_key=True)
    key = Column(String(128), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)


class TaskSchedule(Base):
    """Per-task schedule: next_run_at and last_run_at so scheduling survives restarts."""
    __tablename__ = "task_schedules"

    component_name = Column(String(255), primary_key=True)
    schedule_type = Column(String(64), nullable=False)
    schedule_config = Column(JSON, nullable=True)  # e.g. {"time": "00:05"}
    next_run_at = Column(DateTime(timezone=False), nullable=True)  # null = run immediately (e.g. new DB)
    last_run_at = Column(DateTime(timezone=False), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)


def get_all_task_schedules() -> List[Dict[str, Any]]:
    """Every schedule row as a plain dict (for the API). Datetimes are naive UTC."""
    with session_scope() as session:
        rows = session.execute(select(TaskSchedule).order_by(TaskSchedule.component_name)).scalars().all()
        return [
            {
                "component_name": r.component_name,
                "schedule_type": r.schedule_type,
                "schedule_config": r.schedule_config,
                "next_run_at": r.next_run_at,
                "last_run_at": r.last_run_at,
                "last_error": r.last_error,
            }
            for r in rows
        ]
