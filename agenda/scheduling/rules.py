"""Weekly schedule and calendar settings resolution.

Effective configuration is built by overlaying layers keyed by weekday:
defaults first, then whatever the administrator has persisted. Defaults are
immutable values handed to the resolvers, never module state that callers
mutate.
"""

import logging
from dataclasses import dataclass
from datetime import time
from typing import Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import StoreUnavailableError
from agenda.models.availability import AvailabilityRule
from agenda.models.calendar_settings import CalendarSettings
from agenda.models.user import User

logger = logging.getLogger(__name__)

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)


@dataclass(frozen=True)
class DaySchedule:
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True


@dataclass(frozen=True)
class CalendarConfig:
    slot_duration: int = 30
    buffer_time: int = 0
    advance_booking_days: int = 60
    min_notice_hours: int = 12


@dataclass(frozen=True)
class PublicCalendarConfig:
    settings: CalendarConfig
    schedule: tuple[DaySchedule, ...]


DEFAULT_SCHEDULE: tuple[DaySchedule, ...] = tuple(
    DaySchedule(
        day_of_week=day,
        start_time=time(9, 0),
        end_time=time(18, 0),
        is_active=day not in (SUNDAY, SATURDAY),
    )
    for day in range(7)
)

DEFAULT_SETTINGS = CalendarConfig()


def weekday_index(day) -> int:
    """Weekday with Sunday = 0, as rules store it."""
    return (day.weekday() + 1) % 7


def resolve_schedule(
    persisted: Iterable[DaySchedule],
    defaults: Sequence[DaySchedule] = DEFAULT_SCHEDULE,
) -> list[DaySchedule]:
    layers = [defaults, list(persisted)]

    merged: dict[int, DaySchedule] = {}
    for layer in layers:
        for rule in layer:
            merged[rule.day_of_week] = rule

    return [merged[day] for day in sorted(merged)]


def resolve_settings(
    persisted: CalendarConfig | None,
    defaults: CalendarConfig = DEFAULT_SETTINGS,
) -> CalendarConfig:
    return persisted if persisted is not None else defaults


def rule_for(schedule: Iterable[DaySchedule], day_of_week: int) -> DaySchedule | None:
    for rule in schedule:
        if rule.day_of_week == day_of_week:
            return rule
    return None


def to_day_schedule(rule: AvailabilityRule) -> DaySchedule:
    return DaySchedule(
        day_of_week=rule.day_of_week,
        start_time=rule.start_time,
        end_time=rule.end_time,
        is_active=bool(rule.is_active),
    )


def to_calendar_config(row: CalendarSettings) -> CalendarConfig:
    return CalendarConfig(
        slot_duration=row.slot_duration,
        buffer_time=row.buffer_time,
        advance_booking_days=row.advance_booking_days,
        min_notice_hours=row.min_notice_hours,
    )


def get_calendar_owner_id(db: Session) -> int | None:
    try:
        owner = db.query(User.id).filter(User.role == 'admin').order_by(User.id.asc()).first()
    except SQLAlchemyError:
        logger.exception('Could not look up the calendar owner.')
        return None

    return owner[0] if owner else None


def load_schedule(
    db: Session,
    owner_id: int | None,
    defaults: Sequence[DaySchedule] = DEFAULT_SCHEDULE,
) -> list[DaySchedule]:
    if owner_id is None:
        return list(defaults)

    try:
        rows = db.query(AvailabilityRule).filter(
            AvailabilityRule.user_id == owner_id,
        ).order_by(AvailabilityRule.day_of_week.asc(), AvailabilityRule.id.asc()).all()
    except SQLAlchemyError:
        logger.exception('Failed to read availability rules; falling back to the default schedule.')
        return list(defaults)

    return resolve_schedule((to_day_schedule(row) for row in rows), defaults)


def load_settings(
    db: Session,
    owner_id: int | None,
    defaults: CalendarConfig = DEFAULT_SETTINGS,
) -> CalendarConfig:
    if owner_id is None:
        return defaults

    try:
        row = db.query(CalendarSettings).filter(CalendarSettings.user_id == owner_id).first()
    except SQLAlchemyError:
        logger.exception('Failed to read calendar settings; falling back to defaults.')
        return defaults

    return resolve_settings(to_calendar_config(row) if row else None, defaults)


def save_schedule(db: Session, owner_id: int, schedule: Sequence[DaySchedule]) -> list[DaySchedule]:
    """Replace the owner's weekly schedule as a whole."""
    try:
        db.query(AvailabilityRule).filter(AvailabilityRule.user_id == owner_id).delete(synchronize_session=False)
        db.add_all(
            AvailabilityRule(
                user_id=owner_id,
                day_of_week=day.day_of_week,
                start_time=day.start_time,
                end_time=day.end_time,
                is_active=day.is_active,
            )
            for day in schedule
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to save schedule for owner %s.', owner_id)
        raise StoreUnavailableError('Could not save the schedule.') from exc

    logger.info('Saved schedule with %d days for owner %s.', len(schedule), owner_id)
    return resolve_schedule(schedule)


def save_settings(db: Session, owner_id: int, settings: CalendarConfig) -> CalendarConfig:
    try:
        row = db.query(CalendarSettings).filter(CalendarSettings.user_id == owner_id).first()
        if row is None:
            row = CalendarSettings(user_id=owner_id)
            db.add(row)

        row.slot_duration = settings.slot_duration
        row.buffer_time = settings.buffer_time
        row.advance_booking_days = settings.advance_booking_days
        row.min_notice_hours = settings.min_notice_hours
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to save calendar settings for owner %s.', owner_id)
        raise StoreUnavailableError('Could not save the calendar settings.') from exc

    return settings


def public_calendar_config(db: Session, owner_id: int | None) -> PublicCalendarConfig:
    schedule = load_schedule(db, owner_id)
    return PublicCalendarConfig(
        settings=load_settings(db, owner_id),
        schedule=tuple(day for day in schedule if day.is_active),
    )
