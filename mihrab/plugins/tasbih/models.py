"""
SQLAlchemy model for recitation counts: one row per local calendar date.
"""
from sqlalchemy import Column, String, Integer, DateTime

from mihrab.core.db import Base
from mihrab.core.models import _utc_now


class TasbihCount(Base):
    """Recitations recorded on count_date (YYYY-MM-DD)."""
    __tablename__ = "tasbih_counts"

    count_date = Column(String(10), primary_key=True)
    count = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)
