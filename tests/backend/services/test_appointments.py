from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from backend.core.errors import (
    AlreadyCanceled,
    AppointmentNotFound,
    InvalidBookingWindow,
    NoActiveSubscription,
    NoCreditsRemaining,
    NotAppointmentOwner,
    SlotAlreadyBooked,
    SlotUnavailable,
)
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.blocked_slot import BlockedSlot
from backend.models.subscription import Subscription, SubscriptionStatus
from backend.services.appointments import (
    Actor,
    cancel_appointment,
    create_appointment,
    list_appointments,
    list_user_appointments,
    update_appointment,
)

BOOKING_DAY = date(2025, 6, 1)
# 14:30 in Asia/Kolkata on 2025-05-30
BEFORE_BOOKING_DAY = datetime(2025, 5, 30, 9, 0, tzinfo=timezone.utc)


def _book(db, phone: str = '9876543210', slot_start: str = '14:00', now: datetime = BEFORE_BOOKING_DAY, **kwargs):
    sent = kwargs.pop('sent', [])
    return create_appointment(
        db,
        phone,
        appointment_date=kwargs.pop('appointment_date', BOOKING_DAY),
        slot_start_time=slot_start,
        slot_end_time=kwargs.pop('slot_end_time', '14:30'),
        bird_name='Kiwi',
        symptoms='Sneezing and fluffed feathers since Monday',
        now=now,
        notifier=kwargs.pop('notifier', sent.append),
    )


def _remaining(db, account) -> int:
    db.expire_all()
    return db.get(Subscription, account.subscription_id).consultations_remaining


def test_create_appointment_books_slot_and_spends_one_credit(db, appointment_settings, make_subscriber) -> None:
    account = make_subscriber(consultations=2)
    sent = []

    result = _book(db, sent=sent)

    assert result.remaining_consultations == 1
    assert result.appointment.status == AppointmentStatus.BOOKED.value
    assert result.appointment.subscription_id == account.subscription_id
    assert _remaining(db, account) == 1
    assert sent == [result.appointment]


def test_create_appointment_without_credits_inserts_nothing(db, appointment_settings, make_subscriber) -> None:
    account = make_subscriber(consultations=0, status=SubscriptionStatus.ACTIVE)

    with pytest.raises(NoCreditsRemaining):
        _book(db)

    assert db.query(Appointment).count() == 0
    assert _remaining(db, account) == 0


def test_create_appointment_requires_subscription(db, appointment_settings, make_subscriber) -> None:
    make_subscriber(consultations=4, status=SubscriptionStatus.EXPIRED)

    with pytest.raises(NoActiveSubscription):
        _book(db)

    with pytest.raises(NoActiveSubscription):
        _book(db, phone='9000000000')


def test_create_appointment_treats_lapsed_plan_as_expired(db, appointment_settings, make_subscriber) -> None:
    make_subscriber(consultations=2, start=datetime(2025, 1, 1))

    with pytest.raises(NoActiveSubscription):
        _book(db)


def test_subscription_expiry_uses_the_booking_clock(db, appointment_settings, make_subscriber) -> None:
    # monthly plan ending 2025-06-01, checked on 2025-05-30
    account = make_subscriber(consultations=2, start=datetime(2025, 5, 1))

    result = _book(db)

    assert result.appointment.subscription_id == account.subscription_id
    assert _remaining(db, account) == 1


@pytest.mark.parametrize('slot_end', ['16:45', '14:15', '13:30'])
def test_slot_end_must_match_slot_duration(db, appointment_settings, make_subscriber, slot_end) -> None:
    account = make_subscriber(consultations=2)

    with pytest.raises(InvalidBookingWindow):
        _book(db, slot_end_time=slot_end)

    assert db.query(Appointment).count() == 0
    assert _remaining(db, account) == 2


def test_same_slot_cannot_be_booked_twice(db, appointment_settings, make_subscriber) -> None:
    first = make_subscriber('9876543210', consultations=2)
    second = make_subscriber('9123456780', consultations=2)

    _book(db, phone=first.phone)

    with pytest.raises(SlotAlreadyBooked):
        _book(db, phone=second.phone)

    assert db.query(Appointment).count() == 1
    assert _remaining(db, second) == 2


def test_canceled_slot_can_be_booked_again(db, appointment_settings, make_subscriber) -> None:
    make_subscriber(consultations=3)
    booking = _book(db)
    cancel_appointment(db, booking.appointment.id, Actor.user('9876543210'), now=BEFORE_BOOKING_DAY)

    rebooked = _book(db)

    assert rebooked.appointment.id != booking.appointment.id


def test_active_slot_index_rejects_direct_duplicate_insert(db, make_subscriber) -> None:
    account = make_subscriber()
    for _ in range(2):
        db.add(
            Appointment(
                user_phone=account.phone,
                subscription_id=account.subscription_id,
                bird_name='Kiwi',
                appointment_date=BOOKING_DAY,
                slot_start_time='10:00',
                slot_end_time='10:30',
                symptoms='Lethargic and not eating',
            )
        )

    with pytest.raises(IntegrityError):
        db.commit()


def test_blocked_slot_is_unavailable(db, appointment_settings, make_subscriber, admin) -> None:
    account = make_subscriber(consultations=2)
    db.add(BlockedSlot(block_date=BOOKING_DAY, slot_start_time=None, reason='Holiday', blocked_by=admin.id))
    db.commit()

    with pytest.raises(SlotUnavailable):
        _book(db)

    assert _remaining(db, account) == 2


def test_slot_outside_template_is_unavailable(db, appointment_settings, make_subscriber) -> None:
    make_subscriber(consultations=2)

    with pytest.raises(SlotUnavailable):
        _book(db, slot_start='14:10', slot_end_time='14:40')


@pytest.mark.parametrize(
    ('appointment_date', 'now'),
    [
        (date(2025, 5, 29), BEFORE_BOOKING_DAY),
        (date(2025, 7, 15), BEFORE_BOOKING_DAY),
        (BOOKING_DAY, datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)),
    ],
)
def test_booking_outside_window_is_rejected(db, appointment_settings, make_subscriber, appointment_date, now) -> None:
    make_subscriber(consultations=2)

    with pytest.raises(InvalidBookingWindow):
        _book(db, appointment_date=appointment_date, now=now)


def test_notification_failure_keeps_booking(db, appointment_settings, make_subscriber) -> None:
    account = make_subscriber(consultations=2)

    def failing_notifier(_appointment):
        raise RuntimeError('Twilio unreachable')

    result = _book(db, notifier=failing_notifier)

    assert db.get(Appointment, result.appointment.id) is not None
    assert _remaining(db, account) == 1


def test_cancel_more_than_twelve_hours_ahead_restores_credit(db, appointment_settings, make_subscriber) -> None:
    account = make_subscriber(consultations=2)
    booking = _book(db)

    result = cancel_appointment(
        db, booking.appointment.id, Actor.user(account.phone), 'Bird recovered', now=BEFORE_BOOKING_DAY
    )

    assert result.credit_restored is True
    assert result.appointment.status == AppointmentStatus.CANCELED.value
    assert result.appointment.canceled_by == 'user'
    assert result.appointment.cancellation_reason == 'Bird recovered'
    assert result.appointment.canceled_at is not None
    assert _remaining(db, account) == 2


def test_cancel_within_twelve_hours_keeps_ledger(db, appointment_settings, make_subscriber) -> None:
    account = make_subscriber(consultations=2)
    booking = _book(db)
    # 13:30 in Asia/Kolkata, thirty minutes before the slot
    late = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)

    result = cancel_appointment(db, booking.appointment.id, Actor.user(account.phone), now=late)

    assert result.credit_restored is False
    assert 'do not restore credits' in result.message
    assert _remaining(db, account) == 1


def test_cancel_twice_is_rejected_without_second_restore(db, appointment_settings, make_subscriber) -> None:
    account = make_subscriber(consultations=2)
    booking = _book(db)
    cancel_appointment(db, booking.appointment.id, Actor.user(account.phone), now=BEFORE_BOOKING_DAY)

    with pytest.raises(AlreadyCanceled):
        cancel_appointment(db, booking.appointment.id, Actor.user(account.phone), now=BEFORE_BOOKING_DAY)

    assert _remaining(db, account) == 2


def test_cancel_checks_ownership_but_admin_bypasses(db, appointment_settings, make_subscriber, admin) -> None:
    make_subscriber(consultations=2)
    booking = _book(db)

    with pytest.raises(NotAppointmentOwner):
        cancel_appointment(db, booking.appointment.id, Actor.user('9123456780'), now=BEFORE_BOOKING_DAY)

    result = cancel_appointment(db, booking.appointment.id, Actor.admin(admin.id), now=BEFORE_BOOKING_DAY)

    assert result.appointment.canceled_by == 'admin'


def test_cancel_missing_appointment(db, appointment_settings) -> None:
    with pytest.raises(AppointmentNotFound):
        cancel_appointment(db, 999, Actor.user('9876543210'))


def test_update_appointment_overrides_status_and_notes(db, appointment_settings, make_subscriber, admin) -> None:
    account = make_subscriber(consultations=2)
    booking = _book(db)

    updated = update_appointment(
        db,
        booking.appointment.id,
        admin_id=admin.id,
        status=AppointmentStatus.COMPLETED,
        admin_notes='Prescribed vitamins',
    )

    assert updated.status == AppointmentStatus.COMPLETED.value
    assert updated.admin_notes == 'Prescribed vitamins'
    assert _remaining(db, account) == 1


def test_list_appointments_filters_by_plan_status_and_date(db, appointment_settings, make_subscriber) -> None:
    make_subscriber('9876543210', consultations=2)
    make_subscriber('9123456780', consultations=2)
    _book(db, phone='9876543210', slot_start='10:00', slot_end_time='10:30')
    second = _book(db, phone='9123456780', slot_start='11:00', slot_end_time='11:30')
    update_appointment(db, second.appointment.id, admin_id=1, status=AppointmentStatus.MISSED)

    rows = list_appointments(db, appointment_date=BOOKING_DAY, plan='monthly')
    assert [row[0].slot_start_time for row in rows] == ['11:00', '10:00']
    assert rows[0][1] == 'Asha Rao'
    assert rows[0][2] == 'monthly'

    missed = list_appointments(db, status=AppointmentStatus.MISSED)
    assert [row[0].id for row in missed] == [second.appointment.id]

    assert list_appointments(db, plan='annual') == []
    assert [a.slot_start_time for a in list_user_appointments(db, '9876543210')] == ['10:00']


def test_restoring_canceled_appointment_into_rebooked_slot_conflicts(db, appointment_settings, make_subscriber, admin) -> None:
    make_subscriber('9876543210', consultations=2)
    make_subscriber('9123456780', consultations=2)
    first = _book(db, phone='9876543210')
    cancel_appointment(db, first.appointment.id, Actor.user('9876543210'), now=BEFORE_BOOKING_DAY)
    _book(db, phone='9123456780')

    with pytest.raises(SlotAlreadyBooked):
        update_appointment(db, first.appointment.id, admin_id=admin.id, status=AppointmentStatus.BOOKED)

    db.expire_all()
    assert db.get(Appointment, first.appointment.id).status == AppointmentStatus.CANCELED.value
