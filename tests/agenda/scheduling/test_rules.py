from datetime import date, time

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from agenda.core.errors import StoreUnavailableError
from agenda.models.availability import AvailabilityRule
from agenda.models.user import User
from agenda.scheduling.rules import (
    DEFAULT_SCHEDULE,
    DEFAULT_SETTINGS,
    CalendarConfig,
    DaySchedule,
    get_calendar_owner_id,
    load_schedule,
    load_settings,
    public_calendar_config,
    resolve_schedule,
    resolve_settings,
    rule_for,
    save_schedule,
    save_settings,
    weekday_index,
)


@pytest.mark.parametrize(
    ('day', 'expected'),
    [
        (date(2026, 1, 4), 0),
        (date(2026, 1, 5), 1),
        (date(2026, 1, 9), 5),
        (date(2026, 1, 10), 6),
    ],
)
def test_weekday_index_counts_from_sunday(day: date, expected: int) -> None:
    assert weekday_index(day) == expected


def test_default_schedule_opens_weekdays_only() -> None:
    assert [day.day_of_week for day in DEFAULT_SCHEDULE] == list(range(7))
    assert [day.day_of_week for day in DEFAULT_SCHEDULE if day.is_active] == [1, 2, 3, 4, 5]
    assert all(day.start_time == time(9, 0) and day.end_time == time(18, 0) for day in DEFAULT_SCHEDULE)


def test_resolve_schedule_overlays_persisted_days_on_defaults() -> None:
    monday = DaySchedule(day_of_week=1, start_time=time(10, 0), end_time=time(12, 0))

    schedule = resolve_schedule([monday])

    assert len(schedule) == 7
    assert rule_for(schedule, 1) == monday
    assert rule_for(schedule, 2) == DEFAULT_SCHEDULE[2]


def test_resolve_schedule_last_writer_wins_for_a_weekday() -> None:
    first = DaySchedule(day_of_week=3, start_time=time(8, 0), end_time=time(9, 0))
    second = DaySchedule(day_of_week=3, start_time=time(14, 0), end_time=time(15, 0))

    assert rule_for(resolve_schedule([first, second]), 3) == second


def test_resolve_schedule_does_not_mutate_defaults() -> None:
    before = tuple(DEFAULT_SCHEDULE)

    resolve_schedule([DaySchedule(day_of_week=0, start_time=time(9, 0), end_time=time(10, 0))])

    assert DEFAULT_SCHEDULE == before
    assert not rule_for(DEFAULT_SCHEDULE, 0).is_active


def test_resolve_settings_prefers_persisted_values() -> None:
    persisted = CalendarConfig(slot_duration=45)

    assert resolve_settings(persisted) is persisted
    assert resolve_settings(None) == DEFAULT_SETTINGS


def test_rule_for_returns_none_for_missing_day() -> None:
    assert rule_for([], 1) is None


def test_get_calendar_owner_id_returns_first_admin(db, admin) -> None:
    db.add(User(email='staff@example.com', hashed_password='x', role='staff'))
    db.commit()

    assert get_calendar_owner_id(db) == admin.id


def test_get_calendar_owner_id_without_admin(db) -> None:
    assert get_calendar_owner_id(db) is None


def test_load_schedule_without_owner_returns_defaults(db) -> None:
    assert load_schedule(db, None) == list(DEFAULT_SCHEDULE)


def test_load_schedule_overlays_persisted_rules(db, admin) -> None:
    db.add(AvailabilityRule(user_id=admin.id, day_of_week=1, start_time=time(9, 0), end_time=time(10, 0)))
    db.add(
        AvailabilityRule(
            user_id=admin.id, day_of_week=2, start_time=time(9, 0), end_time=time(18, 0), is_active=False
        )
    )
    db.commit()

    schedule = load_schedule(db, admin.id)

    assert rule_for(schedule, 1) == DaySchedule(1, time(9, 0), time(10, 0), True)
    assert rule_for(schedule, 2).is_active is False
    assert rule_for(schedule, 3) == DEFAULT_SCHEDULE[3]


def test_load_schedule_falls_back_to_defaults_on_store_error(db, admin, monkeypatch) -> None:
    def broken_query(*args, **kwargs):
        raise OperationalError('SELECT', {}, Exception('database is locked'))

    monkeypatch.setattr(db, 'query', broken_query)

    assert load_schedule(db, admin.id) == list(DEFAULT_SCHEDULE)
    assert load_settings(db, admin.id) == DEFAULT_SETTINGS


def test_save_schedule_replaces_previous_rules(db, admin) -> None:
    save_schedule(db, admin.id, [DaySchedule(1, time(9, 0), time(10, 0)), DaySchedule(3, time(9, 0), time(10, 0))])

    saved = save_schedule(db, admin.id, [DaySchedule(1, time(13, 0), time(14, 0))])

    rows = db.query(AvailabilityRule).filter(AvailabilityRule.user_id == admin.id).all()
    assert [(row.day_of_week, row.start_time) for row in rows] == [(1, time(13, 0))]
    assert rule_for(saved, 1).start_time == time(13, 0)
    assert rule_for(load_schedule(db, admin.id), 3) == DEFAULT_SCHEDULE[3]


def test_save_schedule_raises_store_unavailable_on_failure(db, admin, monkeypatch) -> None:
    def broken_commit():
        raise SQLAlchemyError('disk full')

    monkeypatch.setattr(db, 'commit', broken_commit)

    with pytest.raises(StoreUnavailableError):
        save_schedule(db, admin.id, [DaySchedule(1, time(9, 0), time(10, 0))])


def test_save_settings_upserts_owner_row(db, admin) -> None:
    save_settings(db, admin.id, CalendarConfig(slot_duration=45, buffer_time=15))
    save_settings(db, admin.id, CalendarConfig(slot_duration=60, buffer_time=10, min_notice_hours=2))

    assert load_settings(db, admin.id) == CalendarConfig(
        slot_duration=60, buffer_time=10, advance_booking_days=60, min_notice_hours=2
    )


def test_load_settings_without_row_returns_defaults(db, admin) -> None:
    assert load_settings(db, admin.id) == DEFAULT_SETTINGS


def test_public_calendar_config_lists_active_days_only(db, admin) -> None:
    save_schedule(db, admin.id, [DaySchedule(6, time(10, 0), time(12, 0)), DaySchedule(5, time(9, 0), time(17, 0), False)])

    config = public_calendar_config(db, admin.id)

    assert [day.day_of_week for day in config.schedule] == [1, 2, 3, 4, 6]
    assert config.settings == DEFAULT_SETTINGS
