from datetime import date

import pytest

from backend.core.errors import SettingsNotConfigured
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.blocked_slot import BlockedSlot
from backend.services.availability import SlotStatus, is_slot_blocked, resolve_availability

BOOKING_DAY = date(2025, 6, 1)


def _book(db, account, slot_start: str, status: AppointmentStatus = AppointmentStatus.BOOKED) -> Appointment:
    appointment = Appointment(
        user_phone=account.phone,
        subscription_id=account.subscription_id,
        bird_name='Kiwi',
        appointment_date=BOOKING_DAY,
        slot_start_time=slot_start,
        slot_end_time='00:00',
        symptoms='Feather plucking for a week',
        status=status.value,
    )
    db.add(appointment)
    db.commit()
    return appointment


def _block(db, admin, slot_start: str | None, block_date: date = BOOKING_DAY) -> BlockedSlot:
    blocked_slot = BlockedSlot(block_date=block_date, slot_start_time=slot_start, reason='Leave', blocked_by=admin.id)
    db.add(blocked_slot)
    db.commit()
    return blocked_slot


def test_resolve_availability_requires_settings(db) -> None:
    with pytest.raises(SettingsNotConfigured):
        resolve_availability(db, BOOKING_DAY)


def test_resolve_availability_lists_full_template_when_day_is_free(db, appointment_settings) -> None:
    day = resolve_availability(db, BOOKING_DAY)

    assert len(day.slots) == 14
    assert day.slots[0].as_dict() == {'time': '10:00', 'available': True, 'status': 'available'}
    assert day.slots[-1].time == '16:30'


def test_resolve_availability_marks_booked_and_blocked_slots(db, appointment_settings, make_subscriber, admin) -> None:
    account = make_subscriber()
    _book(db, account, '14:00')
    _book(db, account, '15:00', status=AppointmentStatus.CANCELED)
    _block(db, admin, '11:00')

    day = resolve_availability(db, BOOKING_DAY)
    by_time = {slot.time: slot for slot in day.slots}

    assert by_time['14:00'].status is SlotStatus.BOOKED
    assert by_time['11:00'].status is SlotStatus.BLOCKED
    assert by_time['15:00'].status is SlotStatus.AVAILABLE
    assert not by_time['14:00'].available


def test_whole_day_block_blocks_every_slot(db, appointment_settings, admin) -> None:
    _block(db, admin, None)

    day = resolve_availability(db, BOOKING_DAY)

    assert day.slots
    assert all(slot.status is SlotStatus.BLOCKED for slot in day.slots)


def test_blocks_on_other_days_are_ignored(db, appointment_settings, admin) -> None:
    _block(db, admin, None, block_date=date(2025, 6, 2))

    day = resolve_availability(db, BOOKING_DAY)

    assert all(slot.available for slot in day.slots)


def test_available_slots_never_overlap_booked_or_blocked(db, appointment_settings, make_subscriber, admin) -> None:
    account = make_subscriber()
    for slot_start in ('10:00', '12:30', '16:30'):
        _book(db, account, slot_start)
    for slot_start in ('10:00', '13:00'):
        _block(db, admin, slot_start)

    day = resolve_availability(db, BOOKING_DAY)
    available = day.times_with_status(SlotStatus.AVAILABLE)

    assert available.isdisjoint({'10:00', '12:30', '16:30'})
    assert available.isdisjoint({'13:00'})
    assert day.times_with_status(SlotStatus.BOOKED) == {'10:00', '12:30', '16:30'}


def test_is_slot_blocked_matches_exact_time_or_full_day(db, admin) -> None:
    _block(db, admin, '10:30')

    assert is_slot_blocked(BOOKING_DAY, '10:30', db)
    assert not is_slot_blocked(BOOKING_DAY, '11:00', db)

    _block(db, admin, None)

    assert is_slot_blocked(BOOKING_DAY, '11:00', db)
