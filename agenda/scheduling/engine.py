"""Availability slot engine.

Combines the weekly schedule, the slot generator and the occupancy filter over
a range of days. A failure to read booked intervals yields no slots at all:
showing nothing is preferred to showing availability that may be wrong.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.models.event import Event
from agenda.scheduling.occupancy import BookedInterval, intervals_on_day, is_slot_available
from agenda.scheduling.rules import load_schedule, rule_for, weekday_index
from agenda.scheduling.slots import TimeSlot, generate_day_slots
from agenda.scheduling.timeutils import date_range, is_within_booking_window

logger = logging.getLogger(__name__)


def fetch_booked_intervals(db: Session, range_start: datetime, range_end: datetime) -> list[BookedInterval]:
    # TODO: decide with product whether private events (personal blocks) should occupy slots too.
    rows = db.query(Event.start_time, Event.end_time).filter(
        Event.is_public.is_(True),
        Event.start_time < range_end,
        Event.end_time > range_start,
    ).order_by(Event.start_time.asc()).all()

    return [BookedInterval(start, end) for start, end in rows]


def get_available_slots(
    db: Session,
    start_date: date,
    days: int = 60,
    slot_duration: int = 30,
    buffer_time: int = 0,
    owner_id: int | None = None,
) -> list[TimeSlot]:
    days_in_range = date_range(start_date, days)
    if not days_in_range:
        return []

    range_start = datetime.combine(days_in_range[0], time.min)
    range_end = datetime.combine(days_in_range[-1] + timedelta(days=1), time.min)

    try:
        booked = fetch_booked_intervals(db, range_start, range_end)
    except SQLAlchemyError:
        logger.exception('Failed to read booked events for %s..%s; returning no slots.', range_start, range_end)
        return []

    schedule = load_schedule(db, owner_id)

    slots: list[TimeSlot] = []
    for day in days_in_range:
        rule = rule_for(schedule, weekday_index(day))
        if rule is None or not rule.is_active:
            continue

        booked_today = intervals_on_day(booked, day)
        for window in generate_day_slots(day, rule, slot_duration, buffer_time):
            slots.append(
                TimeSlot(
                    start=window.start,
                    end=window.end,
                    available=is_slot_available(window.start, window.end, booked_today),
                )
            )

    return slots


def get_available_slots_for_day(
    db: Session,
    day: date,
    slot_duration: int = 30,
    buffer_time: int = 0,
    owner_id: int | None = None,
) -> list[TimeSlot]:
    return get_available_slots(db, day, 1, slot_duration, buffer_time, owner_id)


def apply_booking_window(
    slots: Iterable[TimeSlot],
    now: datetime,
    min_notice_hours: int,
    advance_booking_days: int,
) -> list[TimeSlot]:
    """Mark slots outside the minimum notice / advance horizon as unavailable."""
    return [
        slot if not slot.available or is_within_booking_window(
            slot.start, min_notice_hours, advance_booking_days, now
        ) else slot._replace(available=False)
        for slot in slots
    ]
