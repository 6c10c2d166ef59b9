from datetime import date, datetime
from typing import Iterable, NamedTuple

from agenda.scheduling.timeutils import intervals_overlap, is_same_day


class BookedInterval(NamedTuple):
    start: datetime
    end: datetime


def is_slot_available(slot_start: datetime, slot_end: datetime, booked_intervals: Iterable[BookedInterval]) -> bool:
    return not any(
        intervals_overlap(slot_start, slot_end, booked.start, booked.end)
        for booked in booked_intervals
    )


def intervals_on_day(booked_intervals: Iterable[BookedInterval], day: date) -> list[BookedInterval]:
    return [booked for booked in booked_intervals if is_same_day(booked.start, day)]
