"""
SQLAlchemy model for the daily prayer log: one row per local calendar date.
"""
from sqlalchemy import Column, String, Boolean, DateTime

from mihrab.core.db import Base
from mihrab.core.models import _utc_now
from mihrab.core.prayers import PrayerName, DailyRecord


class PrayerLogRecord(Base):
    """Which of the five prayers were marked complete on log_date (YYYY-MM-DD, device local)."""
    __tablename__ = "prayer_logs"

    log_date = Column(String(10), primary_key=True)
    fajr = Column(Boolean, default=False, nullable=False)
    dhuhr = Column(Boolean, default=False, nullable=False)
    asr = Column(Boolean, default=False, nullable=False)
    maghrib = Column(Boolean, default=False, nullable=False)
    isha = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)

    @staticmethod
    def column_for(prayer: PrayerName) -> str:
        return prayer.value.lower()

    def to_record(self) -> DailyRecord:
        return {prayer: bool(getattr(self, self.column_for(prayer))) for prayer in PrayerName}
