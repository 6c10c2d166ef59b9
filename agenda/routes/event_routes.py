import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from agenda.auth.dependencies import require_admin
from agenda.core.errors import EventOverlapError, FieldValidationError, NotFoundError, StoreUnavailableError
from agenda.database import ensure_database_ready, get_db
from agenda.models.event import Event
from agenda.models.user import User
from agenda.schemas import MAX_EVENT_DURATION, CreateEventRequest, UpdateEventRequest

router = APIRouter(tags=['events'])

logger = logging.getLogger(__name__)

UPCOMING_EVENTS_LIMIT = 50


class EventBookingResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    notes: str | None = None
    status: str

    class Config:
        from_attributes = True


class EventResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    event_type: str
    is_public: bool
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    booking: EventBookingResponse | None = None

    class Config:
        from_attributes = True


def find_overlapping_event(
    db: Session,
    start_time: datetime,
    end_time: datetime,
    exclude_event_id: str | None = None,
) -> Event | None:
    query = db.query(Event).filter(
        Event.start_time < end_time,
        Event.end_time > start_time,
    )
    if exclude_event_id is not None:
        query = query.filter(Event.id != exclude_event_id)
    return query.first()


def list_upcoming_events(db: Session, now: datetime, limit: int = UPCOMING_EVENTS_LIMIT) -> list[Event]:
    return db.query(Event).options(selectinload(Event.bookings)).filter(
        Event.start_time >= now,
    ).order_by(Event.start_time.asc()).limit(limit).all()


@router.get('', response_model=list[EventResponse])
def list_events(
    limit: int = Query(default=UPCOMING_EVENTS_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    del current_user
    ensure_database_ready()

    try:
        return [EventResponse.model_validate(event) for event in list_upcoming_events(db, datetime.now(), limit)]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list upcoming events.')
        raise StoreUnavailableError('Could not load events.') from exc


@router.post('', response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    data: CreateEventRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    ensure_database_ready()

    try:
        if find_overlapping_event(db, data.start_time, data.end_time):
            raise EventOverlapError

        event = Event(
            title=data.title,
            description=data.description,
            start_time=data.start_time,
            end_time=data.end_time,
            event_type=data.event_type,
            is_public=data.is_public,
            created_by=current_user.id,
        )
        db.add(event)
        db.commit()
        db.refresh(event)

        logger.info('Created %s event %s at %s - %s.', event.event_type, event.id, event.start_time, event.end_time)
        return EventResponse.model_validate(event)
    except IntegrityError as exc:
        db.rollback()
        raise EventOverlapError from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create event.')
        raise StoreUnavailableError('Could not create the event.') from exc


@router.patch('/{event_id}', response_model=EventResponse)
def update_event(
    event_id: str,
    data: UpdateEventRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    del current_user
    ensure_database_ready()

    try:
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise NotFoundError('Event not found.')

        changes = data.model_dump(exclude_unset=True)
        start_time = changes.get('start_time', event.start_time)
        end_time = changes.get('end_time', event.end_time)

        if end_time <= start_time:
            raise FieldValidationError('end_time', 'End time must be after start time.')
        if end_time - start_time > MAX_EVENT_DURATION:
            raise FieldValidationError('end_time', 'Events cannot last longer than 24 hours.')

        if ('start_time' in changes or 'end_time' in changes) and find_overlapping_event(
            db, start_time, end_time, exclude_event_id=event.id
        ):
            raise EventOverlapError

        for field, value in changes.items():
            setattr(event, field, value)

        db.commit()
        db.refresh(event)

        return EventResponse.model_validate(event)
    except IntegrityError as exc:
        db.rollback()
        raise EventOverlapError from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update event %s.', event_id)
        raise StoreUnavailableError('Could not update the event.') from exc


@router.delete('/{event_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    del current_user
    ensure_database_ready()

    try:
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise NotFoundError('Event not found.')

        db.delete(event)
        db.commit()

        logger.info('Deleted event %s.', event_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to delete event %s.', event_id)
        raise StoreUnavailableError('Could not delete the event.') from exc
