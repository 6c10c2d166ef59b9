"""Event model definitions."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from agenda.database import Base
from agenda.models.booking import Booking

EVENT_TYPES = ('meeting', 'booking', 'block', 'personal')


class Event(Base):
    """A committed calendar interval. Public events occupy bookable slots."""
    __tablename__ = "events"
    __table_args__ = (
        Index('uq_events_time_range', 'start_time', 'end_time', unique=True),
        Index('idx_events_public_start', 'is_public', 'start_time'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    event_type = Column(String(50), default='meeting', nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    bookings = relationship(
        Booking,
        back_populates="event",
        cascade="all, delete-orphan",
    )

    @property
    def booking(self):
        return self.bookings[0] if self.bookings else None
