"""Availability model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, SmallInteger, Time
from agenda.database import Base


class AvailabilityRule(Base):
    """Open window for one weekday (0 = Sunday)."""
    __tablename__ = "availability_rules"
    __table_args__ = (
        Index("idx_availability_user_day", "user_id", "day_of_week"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(SmallInteger, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
