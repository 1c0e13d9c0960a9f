"""
SQLAlchemy model for notifications waiting to be delivered.
"""
from sqlalchemy import Column, String, DateTime, Integer, Text

from mihrab.core.db import Base
from mihrab.core.models import _utc_now


class PendingNotificationRecord(Base):
    """One pending notification keyed by its dispatcher id. fire_at is naive UTC."""
    __tablename__ = "pending_notifications"

    id = Column(Integer, primary_key=True, autoincrement=False)
    fire_at = Column(DateTime(timezone=False), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    sound = Column(String(255), nullable=True)
    channel = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
