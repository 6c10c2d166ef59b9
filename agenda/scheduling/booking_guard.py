"""Write-time validation and creation of visitor bookings.

Whatever the visitor last saw in the slot listing, a booking is only accepted
after an authoritative re-check against the store. The event insert is the
atomic tie-break: events carry a unique ``(start_time, end_time)`` index, so of
two simultaneous requests for the same slot only one insert can succeed.
"""

import logging
from datetime import datetime, timedelta

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import (
    AlreadyBookedError,
    FieldValidationError,
    OutsideBookingWindowError,
    PastSlotError,
    StoreUnavailableError,
)
from agenda.models.booking import Booking
from agenda.models.event import Event
from agenda.schemas import RequesterFields, normalize_instant

logger = logging.getLogger(__name__)


def validate_requester(name: str, email: str, phone: str | None = None, notes: str | None = None) -> RequesterFields:
    try:
        return RequesterFields(name=name, email=email, phone=phone, notes=notes)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = str(error['loc'][0]) if error['loc'] else 'request'
        message = error['msg'].removeprefix('Value error, ')
        raise FieldValidationError(field, message) from exc


def find_event_by_range(db: Session, start: datetime, end: datetime) -> str | None:
    existing = db.query(Event.id).filter(
        Event.start_time == start,
        Event.end_time == end,
    ).first()
    return existing[0] if existing else None


def find_conflicting_event(db: Session, start: datetime, end: datetime) -> str | None:
    """Id of an event with exactly this range, or of a public event overlapping it."""
    exact_match = find_event_by_range(db, start, end)
    if exact_match is not None:
        return exact_match

    overlapping = db.query(Event.id).filter(
        Event.is_public.is_(True),
        Event.start_time < end,
        Event.end_time > start,
    ).order_by(Event.start_time.asc()).first()
    return overlapping[0] if overlapping else None


def accept_booking(
    db: Session,
    slot_start: datetime,
    slot_end: datetime,
    name: str,
    email: str,
    phone: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
    min_notice_hours: int | None = None,
    advance_booking_days: int | None = None,
) -> str:
    """Create the occupying event and its booking, returning the booking id.

    Checks run in order and stop at the first failure: requester fields,
    slot in the future (and inside the booking window when one is given),
    slot free of the same range and of overlapping public events. Raises the
    matching ``AgendaError`` subclass.
    """
    requester = validate_requester(name, email, phone, notes)

    start = normalize_instant(slot_start)
    end = normalize_instant(slot_end)
    if end <= start:
        raise FieldValidationError('slot_end', 'Slot end must be after slot start.')

    now = now or datetime.now()
    if start <= now:
        raise PastSlotError
    if min_notice_hours is not None and start < now + timedelta(hours=min_notice_hours):
        raise OutsideBookingWindowError(
            f'Bookings require at least {min_notice_hours} hours of notice.'
        )
    if advance_booking_days is not None and start > now + timedelta(days=advance_booking_days):
        raise OutsideBookingWindowError(
            f'Bookings can only be made up to {advance_booking_days} days in advance.'
        )

    try:
        existing_event_id = find_conflicting_event(db, start, end)
    except SQLAlchemyError as exc:
        logger.exception('Failed to check for an existing event at %s - %s.', start, end)
        raise StoreUnavailableError('Could not verify availability.') from exc

    if existing_event_id is not None:
        logger.warning('Rejected booking for %s - %s: slot already taken by event %s.', start, end, existing_event_id)
        raise AlreadyBookedError

    event = Event(
        title=f'Booking: {requester.name}',
        description=requester.notes,
        start_time=start,
        end_time=end,
        is_public=True,
        event_type='booking',
    )
    try:
        db.add(event)
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Rejected booking for %s - %s: lost the race for the slot.', start, end)
        raise AlreadyBookedError from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create the event for a booking at %s - %s.', start, end)
        raise StoreUnavailableError('Could not create the event.') from exc

    booking = Booking(
        event_id=event.id,
        name=requester.name,
        email=requester.email,
        phone=requester.phone,
        notes=requester.notes,
        status='confirmed',
    )
    try:
        db.add(booking)
        db.commit()
    except SQLAlchemyError as exc:
        # Rolling back discards the uncommitted event as well.
        db.rollback()
        logger.exception('Failed to create the booking for event at %s - %s.', start, end)
        raise StoreUnavailableError('Could not create the booking.') from exc

    logger.info('Accepted booking %s for %s - %s.', booking.id, start, end)
    return booking.id
