"""
Service layer: the daily log store. toggle() is the only mutator and commits before returning.
"""
import logging
from datetime import date
from typing import Dict, List, Union

from sqlalchemy import select

from mihrab.core.clock import date_key
from mihrab.core.db import session_scope
from mihrab.core.prayers import DailyRecord, PrayerName, empty_record
from mihrab.plugins.prayer_log.models import PrayerLogRecord

logger = logging.getLogger(__name__)


class LogStore:
    """Per-date prayer completion, backed by the prayer_logs table."""

    def toggle(self, day: Union[date, str], prayer: PrayerName) -> DailyRecord:
        """Flip one prayer on one date, creating the day with all-false defaults. Returns the new record."""
        key = date_key(day)
        column = PrayerLogRecord.column_for(prayer)
        with session_scope() as session:
            row = session.get(PrayerLogRecord, key)
            if row is None:
                row = PrayerLogRecord(log_date=key, **{PrayerLogRecord.column_for(p): False for p in PrayerName})
                session.add(row)
            setattr(row, column, not getattr(row, column))
            record = row.to_record()
        logger.info(f"Toggled {prayer.value} on {key}: {record[prayer]}")
        return record

    def get_record(self, day: Union[date, str]) -> DailyRecord:
        """The stored record, or all-false for a date never written."""
        with session_scope() as session:
            row = session.get(PrayerLogRecord, date_key(day))
            return row.to_record() if row else empty_record()

    def dates(self) -> List[str]:
        """Recorded date keys, oldest first."""
        with session_scope() as session:
            return list(
                session.execute(select(PrayerLogRecord.log_date).order_by(PrayerLogRecord.log_date)).scalars()
            )

    def snapshot(self) -> Dict[str, DailyRecord]:
        """Every recorded day read in one session; the consistent view the engines compute over."""
        with session_scope() as session:
            rows = session.execute(select(PrayerLogRecord)).scalars().all()
            return {row.log_date: row.to_record() for row in rows}
