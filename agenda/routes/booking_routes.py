import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.auth.dependencies import require_admin
from agenda.core.errors import FieldValidationError, NotFoundError, StoreUnavailableError
from agenda.database import ensure_database_ready, get_db
from agenda.models.booking import BOOKING_STATUSES, Booking
from agenda.models.event import Event
from agenda.models.user import User
from agenda.scheduling.booking_guard import accept_booking
from agenda.scheduling.rules import get_calendar_owner_id, load_settings

router = APIRouter(tags=['bookings'])

logger = logging.getLogger(__name__)


class CreateBookingRequest(BaseModel):
    slot_start: datetime
    slot_end: datetime
    name: str
    email: str
    phone: str | None = None
    notes: str | None = None


class CreateBookingResponse(BaseModel):
    id: str


class BookingResponse(BaseModel):
    id: str
    event_id: str
    name: str
    email: str
    phone: str | None = None
    notes: str | None = None
    status: str
    start_time: datetime
    end_time: datetime
    created_at: datetime | None = None


def to_booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        event_id=booking.event_id,
        name=booking.name,
        email=booking.email,
        phone=booking.phone,
        notes=booking.notes,
        status=booking.status,
        start_time=booking.event.start_time,
        end_time=booking.event.end_time,
        created_at=booking.created_at,
    )


@router.post('', response_model=CreateBookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(data: CreateBookingRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    settings = load_settings(db, get_calendar_owner_id(db))
    booking_id = accept_booking(
        db,
        data.slot_start,
        data.slot_end,
        name=data.name,
        email=data.email,
        phone=data.phone,
        notes=data.notes,
        min_notice_hours=settings.min_notice_hours,
        advance_booking_days=settings.advance_booking_days,
    )

    return CreateBookingResponse(id=booking_id)


@router.get('', response_model=list[BookingResponse])
def list_bookings(
    booking_status: str | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    del current_user
    ensure_database_ready()

    if booking_status is not None and booking_status not in BOOKING_STATUSES:
        raise FieldValidationError('status', 'Invalid booking status.')

    try:
        query = db.query(Booking).join(Event, Booking.event_id == Event.id)
        if booking_status is not None:
            query = query.filter(Booking.status == booking_status)
        bookings = query.order_by(Event.start_time.asc()).all()

        return [to_booking_response(booking) for booking in bookings]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list bookings.')
        raise StoreUnavailableError from exc


@router.post('/{booking_id}/cancel', response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    del current_user
    ensure_database_ready()

    try:
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError('Booking not found.')

        booking.status = 'cancelled'
        db.commit()
        db.refresh(booking)

        logger.info('Cancelled booking %s.', booking_id)
        return to_booking_response(booking)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to cancel booking %s.', booking_id)
        raise StoreUnavailableError('Could not cancel the booking.') from exc
