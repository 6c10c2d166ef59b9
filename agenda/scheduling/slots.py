from datetime import date, datetime
from typing import Iterator, NamedTuple

from agenda.scheduling.rules import DaySchedule
from agenda.scheduling.timeutils import add_minutes, at_wall_clock


class SlotWindow(NamedTuple):
    start: datetime
    end: datetime


class TimeSlot(NamedTuple):
    start: datetime
    end: datetime
    available: bool


class DaySlots:
    """Candidate windows for one day; every iteration starts from scratch."""

    def __init__(self, day: date, rule: DaySchedule | None, slot_duration: int, buffer_time: int = 0):
        if slot_duration <= 0:
            raise ValueError('slot_duration must be positive.')
        if buffer_time < 0:
            raise ValueError('buffer_time cannot be negative.')

        self.day = day
        self.rule = rule
        self.slot_duration = slot_duration
        self.buffer_time = buffer_time

    def __iter__(self) -> Iterator[SlotWindow]:
        if self.rule is None or not self.rule.is_active:
            return

        cursor = at_wall_clock(self.day, self.rule.start_time)
        day_end = at_wall_clock(self.day, self.rule.end_time)

        while cursor < day_end:
            slot_end = add_minutes(cursor, self.slot_duration)
            if slot_end <= day_end:
                yield SlotWindow(cursor, slot_end)
            cursor = add_minutes(slot_end, self.buffer_time)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f'DaySlots(day={self.day!r}, slot_duration={self.slot_duration}, buffer_time={self.buffer_time})'


def generate_day_slots(day: date, rule: DaySchedule | None, slot_duration: int, buffer_time: int = 0) -> DaySlots:
    return DaySlots(day, rule, slot_duration, buffer_time)
