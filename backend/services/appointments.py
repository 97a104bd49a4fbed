"""Appointment booking, cancellation and admin edits."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.core import config
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
from backend.models.appointment import Appointment, AppointmentStatus, CanceledBy
from backend.models.appointment_settings import AppointmentSettings
from backend.models.subscription import Subscription, SubscriptionStatus
from backend.models.user_account import UserAccount
from backend.services import credits
from backend.services.availability import day_template, is_slot_blocked
from backend.services.notifications import send_booking_confirmation
from backend.services.settings import get_settings, require_settings
from backend.services.slots import add_minutes, slot_start_datetime
from backend.services.subscriptions import effective_status, get_user_subscription

logger = logging.getLogger(__name__)

STATUS_UPDATE_MESSAGES = {
    AppointmentStatus.BOOKED: 'Appointment marked as booked.',
    AppointmentStatus.COMPLETED: 'Appointment marked as completed.',
    AppointmentStatus.CANCELED: 'Appointment marked as canceled.',
    AppointmentStatus.MISSED: 'Appointment marked as missed.',
}


@dataclass(frozen=True)
class Actor:
    kind: CanceledBy
    user_phone: str | None = None
    admin_id: int | None = None

    @classmethod
    def user(cls, phone: str) -> 'Actor':
        return cls(kind=CanceledBy.USER, user_phone=phone)

    @classmethod
    def admin(cls, admin_id: int) -> 'Actor':
        return cls(kind=CanceledBy.ADMIN, admin_id=admin_id)

    def can_manage(self, appointment: Appointment) -> bool:
        if self.kind is CanceledBy.ADMIN:
            return True
        if self.kind is CanceledBy.USER:
            return appointment.user_phone == self.user_phone
        raise ValueError(f'Unknown actor kind: {self.kind}')


@dataclass
class BookingResult:
    appointment: Appointment
    remaining_consultations: int


@dataclass
class CancellationResult:
    appointment: Appointment
    credit_restored: bool

    @property
    def message(self) -> str:
        if self.credit_restored:
            return 'Appointment canceled successfully. Your consultation credit has been restored.'
        return (
            f'Appointment canceled. Note: Cancellations within {config.CANCELLATION_CREDIT_CUTOFF_HOURS} '
            'hours of appointment do not restore credits.'
        )


def get_timezone(settings: AppointmentSettings | None) -> ZoneInfo:
    return ZoneInfo(settings.timezone if settings else config.DEFAULT_TIMEZONE)


def local_now(tz: ZoneInfo, now: datetime | None = None) -> datetime:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=tz)
    return current.astimezone(tz)


def hours_until(appointment: Appointment, tz: ZoneInfo, now: datetime | None = None) -> float:
    starts_at = slot_start_datetime(appointment.appointment_date, appointment.slot_start_time).replace(tzinfo=tz)
    return (starts_at - local_now(tz, now)).total_seconds() / 3600


def find_active_appointment(db: Session, appointment_date: date, slot_start: str) -> Appointment | None:
    return db.query(Appointment).filter(
        Appointment.appointment_date == appointment_date,
        Appointment.slot_start_time == slot_start,
        Appointment.status != AppointmentStatus.CANCELED.value,
    ).first()


def validate_booking_request(
    settings: AppointmentSettings,
    appointment_date: date,
    slot_start: str,
    slot_end: str,
    now: datetime | None = None,
) -> None:
    tz = get_timezone(settings)
    current = local_now(tz, now)
    today = current.date()

    if appointment_date < today:
        raise InvalidBookingWindow('Appointments cannot be booked for past dates.')

    if appointment_date > today + timedelta(days=settings.max_advance_booking_days):
        raise InvalidBookingWindow(
            f'Appointments can only be booked up to {settings.max_advance_booking_days} days in advance.'
        )

    if slot_start not in day_template(settings):
        raise SlotUnavailable()

    if slot_end != add_minutes(slot_start, settings.slot_duration):
        raise InvalidBookingWindow(
            f'Slot end time must be {settings.slot_duration} minutes after the start time.'
        )

    if slot_start_datetime(appointment_date, slot_start).replace(tzinfo=tz) <= current:
        raise InvalidBookingWindow('This slot has already started. Please select a later time.')


def create_appointment(
    db: Session,
    user_phone: str,
    *,
    appointment_date: date,
    slot_start_time: str,
    slot_end_time: str,
    bird_name: str,
    symptoms: str,
    now: datetime | None = None,
    notifier: Callable[[Appointment], None] = send_booking_confirmation,
) -> BookingResult:
    """Book a slot and spend one consultation credit.

    The subscription row is locked for the whole booking, and the partial unique
    index on active slots rejects a concurrent insert for the same time, so the
    check, insert and deduction commit or roll back together.
    """
    try:
        settings = require_settings(db)
        current = local_now(get_timezone(settings), now)
        # subscription dates are stored naive in clinic time
        clinic_now = current.replace(tzinfo=None)

        subscription = get_user_subscription(db, user_phone, for_update=True)
        if subscription is None or effective_status(subscription, clinic_now) is not SubscriptionStatus.ACTIVE:
            raise NoActiveSubscription()
        if (subscription.consultations_remaining or 0) <= 0:
            raise NoCreditsRemaining()

        validate_booking_request(settings, appointment_date, slot_start_time, slot_end_time, current)

        if find_active_appointment(db, appointment_date, slot_start_time):
            raise SlotAlreadyBooked()
        if is_slot_blocked(appointment_date, slot_start_time, db):
            raise SlotUnavailable()

        appointment = Appointment(
            user_phone=user_phone,
            subscription_id=subscription.id,
            bird_name=bird_name,
            appointment_date=appointment_date,
            slot_start_time=slot_start_time,
            slot_end_time=slot_end_time,
            symptoms=symptoms,
            status=AppointmentStatus.BOOKED.value,
        )
        db.add(appointment)
        try:
            db.flush()
        except IntegrityError as exc:
            raise SlotAlreadyBooked() from exc

        remaining = credits.deduct(db, subscription.id, clinic_now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    logger.info(
        'Booked appointment %s for %s on %s at %s (%s credits left)',
        appointment.id,
        user_phone,
        appointment_date,
        slot_start_time,
        remaining,
    )

    try:
        notifier(appointment)
    except Exception:
        logger.exception('Confirmation for appointment %s failed; booking kept.', appointment.id)

    return BookingResult(appointment=appointment, remaining_consultations=remaining)


def cancel_appointment(
    db: Session,
    appointment_id: int,
    actor: Actor,
    reason: str | None = None,
    *,
    now: datetime | None = None,
) -> CancellationResult:
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).with_for_update().first()
        if appointment is None:
            raise AppointmentNotFound()
        if not actor.can_manage(appointment):
            raise NotAppointmentOwner()
        if appointment.status == AppointmentStatus.CANCELED.value:
            raise AlreadyCanceled()

        tz = get_timezone(get_settings(db))
        credit_restored = False
        if hours_until(appointment, tz, now) > config.CANCELLATION_CREDIT_CUTOFF_HOURS:
            if db.get(Subscription, appointment.subscription_id) is not None:
                credits.restore(db, appointment.subscription_id)
                credit_restored = True

        appointment.status = AppointmentStatus.CANCELED.value
        appointment.canceled_at = datetime.now()
        appointment.canceled_by = actor.kind.value
        appointment.cancellation_reason = reason or None
        appointment.credit_restored = credit_restored
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    logger.info(
        'Appointment %s canceled by %s (credit restored: %s)',
        appointment.id,
        actor.kind.value,
        credit_restored,
    )
    return CancellationResult(appointment=appointment, credit_restored=credit_restored)


def update_appointment(
    db: Session,
    appointment_id: int,
    *,
    admin_id: int,
    status: AppointmentStatus | None = None,
    admin_notes: str | None = None,
    cancellation_reason: str | None = None,
) -> Appointment:
    """Admin override: rewrites status and notes without transition rules or ledger changes."""
    appointment = db.get(Appointment, appointment_id)
    if appointment is None:
        raise AppointmentNotFound()

    if status is not None:
        appointment.status = status.value
        if status is AppointmentStatus.CANCELED and appointment.canceled_at is None:
            appointment.canceled_at = datetime.now()
            appointment.canceled_by = CanceledBy.ADMIN.value
    if admin_notes is not None:
        appointment.admin_notes = admin_notes
    if cancellation_reason is not None:
        appointment.cancellation_reason = cancellation_reason

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise SlotAlreadyBooked(
            'Another appointment is already active in this slot. Cancel it before restoring this one.'
        ) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    logger.info('Admin %s updated appointment %s (status=%s)', admin_id, appointment_id, appointment.status)
    return appointment


def list_user_appointments(db: Session, user_phone: str) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.user_phone == user_phone,
    ).order_by(Appointment.appointment_date.desc(), Appointment.slot_start_time.desc()).all()


def list_appointments(
    db: Session,
    appointment_date: date | None = None,
    status: AppointmentStatus | None = None,
    plan: str | None = None,
) -> list[tuple[Appointment, str | None, str | None]]:
    query = (
        db.query(Appointment, UserAccount.full_name, Subscription.plan)
        .outerjoin(UserAccount, Appointment.user_phone == UserAccount.phone)
        .outerjoin(Subscription, Appointment.subscription_id == Subscription.id)
    )

    if appointment_date is not None:
        query = query.filter(Appointment.appointment_date == appointment_date)
    if status is not None:
        query = query.filter(Appointment.status == status.value)
    if plan:
        query = query.filter(Subscription.plan == plan)

    return query.order_by(Appointment.appointment_date.desc(), Appointment.slot_start_time.desc()).all()
