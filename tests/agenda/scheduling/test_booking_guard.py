from datetime import datetime

import pytest

from agenda.core.errors import (
    AlreadyBookedError,
    FieldValidationError,
    OutsideBookingWindowError,
    PastSlotError,
    StoreUnavailableError,
)
from agenda.models.booking import Booking
from agenda.models.event import Event
from agenda.scheduling import booking_guard
from agenda.scheduling.booking_guard import (
    accept_booking,
    find_conflicting_event,
    find_event_by_range,
    validate_requester,
)

NOW = datetime(2026, 1, 1, 8, 0)
SLOT_START = datetime(2026, 1, 5, 9, 0)
SLOT_END = datetime(2026, 1, 5, 9, 30)


def _book(db, **overrides) -> str:
    arguments = {
        'slot_start': SLOT_START,
        'slot_end': SLOT_END,
        'name': 'Ada Lovelace',
        'email': 'ada@example.com',
        'now': NOW,
    }
    arguments.update(overrides)
    return accept_booking(db, **arguments)


def test_validate_requester_normalizes_fields() -> None:
    requester = validate_requester('  Ada Lovelace ', ' ADA@Example.COM ', phone='  ', notes=' Bring slides ')

    assert requester.name == 'Ada Lovelace'
    assert requester.email == 'ada@example.com'
    assert requester.phone is None
    assert requester.notes == 'Bring slides'


@pytest.mark.parametrize(
    ('name', 'email', 'phone', 'notes', 'field'),
    [
        ('A', 'ada@example.com', None, None, 'name'),
        ('Ada', 'not-an-email', None, None, 'email'),
        ('Ada', 'ada@example.com', 'call me maybe', None, 'phone'),
        ('Ada', 'ada@example.com', None, 'x' * 1001, 'notes'),
    ],
)
def test_validate_requester_reports_failing_field(name, email, phone, notes, field: str) -> None:
    with pytest.raises(FieldValidationError) as exception_info:
        validate_requester(name, email, phone, notes)

    assert exception_info.value.field == field
    assert not exception_info.value.detail.startswith('Value error')


def test_accept_booking_creates_event_and_booking(db) -> None:
    booking_id = _book(db, phone='+1 555 0100', notes='First visit')

    booking = db.query(Booking).filter(Booking.id == booking_id).one()
    assert booking.name == 'Ada Lovelace'
    assert booking.status == 'confirmed'
    assert booking.phone == '+1 555 0100'
    assert booking.event.start_time == SLOT_START
    assert booking.event.end_time == SLOT_END
    assert booking.event.is_public is True
    assert booking.event.event_type == 'booking'
    assert booking.event.title == 'Booking: Ada Lovelace'


def test_accept_booking_rejects_second_booking_for_same_slot(db) -> None:
    _book(db)

    with pytest.raises(AlreadyBookedError):
        _book(db, name='Grace Hopper', email='grace@example.com')

    assert db.query(Event).count() == 1
    assert db.query(Booking).count() == 1


def test_accept_booking_treats_unique_index_violation_as_already_booked(db, monkeypatch) -> None:
    _book(db)
    monkeypatch.setattr(booking_guard, 'find_conflicting_event', lambda *args: None)

    with pytest.raises(AlreadyBookedError):
        _book(db, name='Grace Hopper', email='grace@example.com')

    assert db.query(Event).count() == 1
    assert db.query(Booking).count() == 1


def test_accept_booking_allows_adjacent_slots(db) -> None:
    _book(db)
    _book(db, slot_start=SLOT_END, slot_end=datetime(2026, 1, 5, 10, 0))

    assert db.query(Booking).count() == 2


def test_accept_booking_rejects_past_slot_without_writing(db) -> None:
    with pytest.raises(PastSlotError):
        _book(db, slot_start=datetime(2025, 12, 31, 9, 0), slot_end=datetime(2025, 12, 31, 9, 30))

    assert db.query(Event).count() == 0
    assert db.query(Booking).count() == 0


def test_accept_booking_rejects_slot_starting_now(db) -> None:
    with pytest.raises(PastSlotError):
        _book(db, slot_start=NOW, slot_end=datetime(2026, 1, 1, 8, 30))


def test_accept_booking_validates_requester_before_time_checks(db) -> None:
    with pytest.raises(FieldValidationError) as exception_info:
        _book(db, email='broken', slot_start=datetime(2025, 12, 31, 9, 0), slot_end=datetime(2025, 12, 31, 9, 30))

    assert exception_info.value.field == 'email'


def test_accept_booking_rejects_inverted_range(db) -> None:
    with pytest.raises(FieldValidationError) as exception_info:
        _book(db, slot_start=SLOT_END, slot_end=SLOT_START)

    assert exception_info.value.field == 'slot_end'


@pytest.mark.parametrize(
    ('slot_start', 'slot_end'),
    [
        (datetime(2026, 1, 1, 12, 0), datetime(2026, 1, 1, 12, 30)),
        (datetime(2026, 3, 9, 9, 0), datetime(2026, 3, 9, 9, 30)),
    ],
)
def test_accept_booking_enforces_booking_window(db, slot_start: datetime, slot_end: datetime) -> None:
    with pytest.raises(OutsideBookingWindowError):
        _book(db, slot_start=slot_start, slot_end=slot_end, min_notice_hours=12, advance_booking_days=60)

    assert db.query(Event).count() == 0


def test_accept_booking_drops_seconds_from_instants(db) -> None:
    booking_id = _book(db, slot_start=datetime(2026, 1, 5, 9, 0, 42), slot_end=datetime(2026, 1, 5, 9, 30, 5))

    booking = db.query(Booking).filter(Booking.id == booking_id).one()
    assert booking.event.start_time == SLOT_START
    assert find_event_by_range(db, SLOT_START, SLOT_END) == booking.event_id


def test_failed_booking_write_rolls_back_the_event(db, monkeypatch) -> None:
    def booking_without_name(**fields):
        fields['name'] = None
        return Booking(**fields)

    monkeypatch.setattr(booking_guard, 'Booking', booking_without_name)

    with pytest.raises(StoreUnavailableError):
        _book(db)

    assert db.query(Event).count() == 0
    assert db.query(Booking).count() == 0


def test_accept_booking_rejects_partial_overlap_with_public_event(db) -> None:
    db.add(Event(title='Workshop', start_time=datetime(2026, 1, 5, 9, 15), end_time=datetime(2026, 1, 5, 9, 45)))
    db.commit()

    with pytest.raises(AlreadyBookedError):
        _book(db)

    assert db.query(Event).count() == 1
    assert db.query(Booking).count() == 0


def test_accept_booking_ignores_overlapping_private_event(db) -> None:
    db.add(
        Event(
            title='Dentist',
            start_time=datetime(2026, 1, 5, 9, 15),
            end_time=datetime(2026, 1, 5, 9, 45),
            is_public=False,
        )
    )
    db.commit()

    _book(db)

    assert db.query(Booking).count() == 1


def test_find_conflicting_event_prefers_exact_match(db) -> None:
    private = Event(title='Hold', start_time=SLOT_START, end_time=SLOT_END, is_public=False)
    db.add(private)
    db.commit()

    assert find_conflicting_event(db, SLOT_START, SLOT_END) == private.id
    assert find_conflicting_event(db, SLOT_END, datetime(2026, 1, 5, 10, 0)) is None
