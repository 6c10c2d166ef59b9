"""Calendar settings model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from agenda.database import Base


class CalendarSettings(Base):
    """Global booking parameters, one row per calendar owner."""
    __tablename__ = "calendar_settings"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    slot_duration = Column(Integer, nullable=False, default=30)
    buffer_time = Column(Integer, nullable=False, default=0)
    advance_booking_days = Column(Integer, nullable=False, default=60)
    min_notice_hours = Column(Integer, nullable=False, default=12)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
