from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agenda.auth.dependencies import require_admin
from agenda.database import ensure_database_ready, get_db
from agenda.models.user import User
from agenda.scheduling import rules
from agenda.schemas import CalendarSettingsModel, DayScheduleModel, SaveScheduleRequest

router = APIRouter(tags=['settings'])


@router.get('/schedule', response_model=list[DayScheduleModel])
def get_schedule(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    schedule = rules.load_schedule(db, current_user.id)
    return [DayScheduleModel.from_day_schedule(day) for day in schedule]


@router.put('/schedule', response_model=list[DayScheduleModel])
def save_schedule(
    data: SaveScheduleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    ensure_database_ready()

    schedule = rules.save_schedule(db, current_user.id, [day.to_day_schedule() for day in data.schedule])
    return [DayScheduleModel.from_day_schedule(day) for day in schedule]


@router.get('', response_model=CalendarSettingsModel)
def get_settings(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return CalendarSettingsModel.from_calendar_config(rules.load_settings(db, current_user.id))


@router.put('', response_model=CalendarSettingsModel)
def save_settings(
    data: CalendarSettingsModel,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    ensure_database_ready()

    saved = rules.save_settings(db, current_user.id, data.to_calendar_config())
    return CalendarSettingsModel.from_calendar_config(saved)
