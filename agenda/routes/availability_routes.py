from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from agenda.database import get_db
from agenda.scheduling.engine import apply_booking_window, get_available_slots
from agenda.scheduling.rules import get_calendar_owner_id, load_settings, public_calendar_config
from agenda.schemas import CalendarSettingsModel, DayScheduleModel

router = APIRouter(tags=['availability'])


class TimeSlotResponse(BaseModel):
    start: datetime
    end: datetime
    available: bool


class PublicCalendarConfigResponse(BaseModel):
    settings: CalendarSettingsModel
    schedule: list[DayScheduleModel]


@router.get('/slots', response_model=list[TimeSlotResponse])
def list_time_slots(
    response: Response,
    start_date: date | None = Query(default=None),
    days: int | None = Query(default=None, ge=1, le=365),
    slot_duration: int | None = Query(default=None, ge=15, le=480),
    buffer_time: int | None = Query(default=None, ge=0, le=120),
    db: Session = Depends(get_db),
):
    response.headers['Cache-Control'] = 'no-store'

    now = datetime.now()
    owner_id = get_calendar_owner_id(db)
    settings = load_settings(db, owner_id)

    slots = get_available_slots(
        db,
        start_date or now.date(),
        days=days or settings.advance_booking_days,
        slot_duration=slot_duration or settings.slot_duration,
        buffer_time=settings.buffer_time if buffer_time is None else buffer_time,
        owner_id=owner_id,
    )
    slots = apply_booking_window(slots, now, settings.min_notice_hours, settings.advance_booking_days)

    return [TimeSlotResponse(start=slot.start, end=slot.end, available=slot.available) for slot in slots]


@router.get('/config', response_model=PublicCalendarConfigResponse)
def get_public_config(db: Session = Depends(get_db)):
    config = public_calendar_config(db, get_calendar_owner_id(db))

    return PublicCalendarConfigResponse(
        settings=CalendarSettingsModel.from_calendar_config(config.settings),
        schedule=[DayScheduleModel.from_day_schedule(day) for day in config.schedule],
    )
