"""Booking model definitions."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from agenda.database import Base

BOOKING_STATUSES = ('confirmed', 'cancelled', 'completed')


class Booking(Base):
    """A visitor reservation linked to the event that occupies its slot."""
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(50), default='confirmed', nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    event = relationship("Event", back_populates="bookings")
