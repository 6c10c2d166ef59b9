"""Request models shared by the routes and the booking guard."""

import re
from datetime import datetime, timedelta

from pydantic import BaseModel, Field, field_validator, model_validator

from agenda.models.event import EVENT_TYPES
from agenda.scheduling.rules import CalendarConfig, DaySchedule
from agenda.scheduling.timeutils import format_wall_clock, parse_wall_clock, to_local_naive

EMAIL_PATTERN = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')
PHONE_PATTERN = re.compile(r'^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$')
MAX_NAME_LENGTH = 255
MIN_NAME_LENGTH = 2
MAX_EMAIL_LENGTH = 255
MAX_NOTES_LENGTH = 1000
MAX_TITLE_LENGTH = 255
MAX_EVENT_DURATION = timedelta(hours=24)


def normalize_instant(value: datetime) -> datetime:
    return to_local_naive(value).replace(second=0, microsecond=0)


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class RequesterFields(BaseModel):
    name: str
    email: str
    phone: str | None = None
    notes: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < MIN_NAME_LENGTH:
            raise ValueError(f'Name must be at least {MIN_NAME_LENGTH} characters.')
        if len(normalized) > MAX_NAME_LENGTH:
            raise ValueError(f'Name must be {MAX_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if len(normalized) > MAX_EMAIL_LENGTH:
            raise ValueError(f'Email must be {MAX_EMAIL_LENGTH} characters or fewer.')
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError('Invalid email address.')
        return normalized

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        normalized = _optional_text(value)
        if normalized is not None and not PHONE_PATTERN.match(normalized):
            raise ValueError('Invalid phone number.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        normalized = _optional_text(value)
        if normalized is not None and len(normalized) > MAX_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')
        return normalized


class DayScheduleModel(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description='Weekday (0 = Sunday, 6 = Saturday)')
    start_time: str = Field(description='Opening time, HH:MM')
    end_time: str = Field(description='Closing time, HH:MM')
    is_active: bool = True

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_wall_clock(cls, value: str) -> str:
        return format_wall_clock(parse_wall_clock(value))

    @model_validator(mode='after')
    def validate_range(self) -> 'DayScheduleModel':
        if self.is_active and parse_wall_clock(self.end_time) <= parse_wall_clock(self.start_time):
            raise ValueError('End time must be after start time.')
        return self

    def to_day_schedule(self) -> DaySchedule:
        return DaySchedule(
            day_of_week=self.day_of_week,
            start_time=parse_wall_clock(self.start_time),
            end_time=parse_wall_clock(self.end_time),
            is_active=self.is_active,
        )

    @classmethod
    def from_day_schedule(cls, day: DaySchedule) -> 'DayScheduleModel':
        return cls(
            day_of_week=day.day_of_week,
            start_time=format_wall_clock(day.start_time),
            end_time=format_wall_clock(day.end_time),
            is_active=day.is_active,
        )


class SaveScheduleRequest(BaseModel):
    schedule: list[DayScheduleModel]

    @field_validator('schedule')
    @classmethod
    def validate_unique_days(cls, value: list[DayScheduleModel]) -> list[DayScheduleModel]:
        days = [day.day_of_week for day in value]
        if len(days) != len(set(days)):
            raise ValueError('Each weekday may appear only once.')
        return value


class CalendarSettingsModel(BaseModel):
    slot_duration: int = Field(default=30, ge=15, le=480, description='Slot length in minutes')
    buffer_time: int = Field(default=0, ge=0, le=120, description='Gap after each slot in minutes')
    advance_booking_days: int = Field(default=60, ge=1, le=365, description='Booking horizon in days')
    min_notice_hours: int = Field(default=12, ge=0, le=168, description='Minimum lead time in hours')

    def to_calendar_config(self) -> CalendarConfig:
        return CalendarConfig(**self.model_dump())

    @classmethod
    def from_calendar_config(cls, config: CalendarConfig) -> 'CalendarSettingsModel':
        return cls(
            slot_duration=config.slot_duration,
            buffer_time=config.buffer_time,
            advance_booking_days=config.advance_booking_days,
            min_notice_hours=config.min_notice_hours,
        )


class EventFields(BaseModel):
    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    event_type: str | None = None
    is_public: bool | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Title is required.')
        if len(normalized) > MAX_TITLE_LENGTH:
            raise ValueError(f'Title must be {MAX_TITLE_LENGTH} characters or fewer.')
        return normalized

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_instant(cls, value: datetime | None) -> datetime | None:
        return normalize_instant(value) if value is not None else None

    @field_validator('event_type')
    @classmethod
    def validate_event_type(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in EVENT_TYPES:
            raise ValueError('Invalid event type.')
        return normalized

    @model_validator(mode='after')
    def validate_range(self):
        if self.start_time is not None and self.end_time is not None:
            if self.end_time <= self.start_time:
                raise ValueError('End time must be after start time.')
            if self.end_time - self.start_time > MAX_EVENT_DURATION:
                raise ValueError('Events cannot last longer than 24 hours.')
        return self


class CreateEventRequest(EventFields):
    title: str
    start_time: datetime
    end_time: datetime
    event_type: str = 'meeting'
    is_public: bool = True


class UpdateEventRequest(EventFields):
    @model_validator(mode='after')
    def reject_null_required_fields(self):
        for field in ('title', 'start_time', 'end_time', 'event_type', 'is_public'):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f'{field} cannot be null.')
        return self
