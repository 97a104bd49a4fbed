import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin_id
from backend.core.errors import BlockedSlotNotFound, SubscriptionNotFound
from backend.database import get_db
from backend.models.appointment import AppointmentStatus
from backend.models.audit_log import AuditLog
from backend.models.blocked_slot import BlockedSlot
from backend.models.subscription import Subscription, SubscriptionPlan
from backend.routes.appointment_routes import (
    CancelAppointmentRequest,
    database_unavailable,
    ensure_database_ready,
    validate_hhmm,
)
from backend.schemas import (
    AdminAppointmentResponse,
    AppointmentSettingsResponse,
    AuditLogResponse,
    BlockedSlotResponse,
    CamelModel,
    SubscriptionResponse,
)
from backend.services import appointments as appointment_service
from backend.services import credits
from backend.services import settings as settings_service
from backend.services.slots import to_minutes

router = APIRouter(prefix='/admin', tags=['admin'])
logger = logging.getLogger(__name__)

MAX_ADMIN_NOTES_LENGTH = 2000


class UpdateAppointmentRequest(CamelModel):
    status: AppointmentStatus | None = None
    admin_notes: str | None = None
    cancellation_reason: str | None = None

    @field_validator('admin_notes')
    @classmethod
    def validate_admin_notes(cls, value: str | None) -> str | None:
        if value is not None and len(value) > MAX_ADMIN_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_ADMIN_NOTES_LENGTH} characters or fewer.')
        return value


class CreateBlockedSlotRequest(CamelModel):
    block_date: date
    slot_start_time: str | None = None
    slot_end_time: str | None = None
    reason: str

    @field_validator('slot_start_time', 'slot_end_time')
    @classmethod
    def validate_slot_time(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_hhmm(value)

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Reason is required')
        return normalized

    @model_validator(mode='after')
    def validate_time_range(self) -> 'CreateBlockedSlotRequest':
        if self.slot_start_time is None and self.slot_end_time is not None:
            raise ValueError('A blocked end time needs a start time.')
        if (
            self.slot_start_time is not None
            and self.slot_end_time is not None
            and to_minutes(self.slot_end_time) <= to_minutes(self.slot_start_time)
        ):
            raise ValueError('Blocked end time must be after the start time.')
        return self


class UpdateAppointmentSettingsRequest(CamelModel):
    slot_duration: int | None = Field(default=None, ge=15, le=120)
    buffer_time: int | None = Field(default=None, ge=0, le=60)
    working_hours_start: str | None = None
    working_hours_end: str | None = None
    max_advance_booking_days: int | None = Field(default=None, ge=1, le=90)

    @field_validator('working_hours_start', 'working_hours_end')
    @classmethod
    def validate_working_hours(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_hhmm(value)


class UpdateConsultationsRequest(BaseModel):
    consultations: int = Field(ge=0, le=credits.MAX_ADMIN_CONSULTATIONS, strict=True)


def to_admin_appointment(row) -> AdminAppointmentResponse:
    appointment, full_name, subscription_plan = row
    response = AdminAppointmentResponse.model_validate(appointment)
    return response.model_copy(update={'full_name': full_name, 'subscription_plan': subscription_plan})


@router.get('/appointments')
def list_appointments(
    appointment_date: date | None = Query(default=None, alias='date'),
    appointment_status: AppointmentStatus | None = Query(default=None, alias='status'),
    plan: SubscriptionPlan | None = Query(default=None),
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rows = appointment_service.list_appointments(
            db,
            appointment_date=appointment_date,
            status=appointment_status,
            plan=plan.value if plan else None,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'appointments': [to_admin_appointment(row) for row in rows]}


@router.patch('/appointments/{appointment_id}')
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment_service.update_appointment(
            db,
            appointment_id,
            admin_id=admin_id,
            status=data.status,
            admin_notes=data.admin_notes,
            cancellation_reason=data.cancellation_reason,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    message = (
        appointment_service.STATUS_UPDATE_MESSAGES[data.status]
        if data.status is not None
        else 'Appointment updated successfully'
    )
    return {'message': message}


@router.patch('/appointments/{appointment_id}/cancel')
def cancel_appointment(
    appointment_id: int,
    data: CancelAppointmentRequest | None = None,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = appointment_service.cancel_appointment(
            db,
            appointment_id,
            appointment_service.Actor.admin(admin_id),
            data.reason if data else None,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'message': result.message, 'creditRestored': result.credit_restored}


@router.post('/blocked-slots', status_code=status.HTTP_201_CREATED)
def create_blocked_slot(
    data: CreateBlockedSlotRequest,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        blocked_slot = BlockedSlot(
            block_date=data.block_date,
            slot_start_time=data.slot_start_time,
            slot_end_time=data.slot_end_time,
            reason=data.reason,
            blocked_by=admin_id,
        )
        db.add(blocked_slot)
        db.commit()
        db.refresh(blocked_slot)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info(
        'Admin %s blocked %s %s',
        admin_id,
        data.block_date,
        data.slot_start_time or 'full day',
    )
    return {'message': 'Slot blocked successfully', 'blockedSlot': BlockedSlotResponse.model_validate(blocked_slot)}


@router.get('/blocked-slots')
def list_blocked_slots(
    block_date: date | None = Query(default=None, alias='date'),
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(BlockedSlot)
        if block_date is not None:
            query = query.filter(BlockedSlot.block_date == block_date)
        blocked_slots = query.order_by(BlockedSlot.block_date.desc(), BlockedSlot.slot_start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'blockedSlots': [BlockedSlotResponse.model_validate(blocked_slot) for blocked_slot in blocked_slots]}


@router.delete('/blocked-slots/{blocked_slot_id}')
def remove_blocked_slot(
    blocked_slot_id: int,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        blocked_slot = db.get(BlockedSlot, blocked_slot_id)
        if blocked_slot is None:
            raise BlockedSlotNotFound()

        db.delete(blocked_slot)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Admin %s removed blocked slot %s', admin_id, blocked_slot_id)
    return {'message': 'Blocked slot removed successfully'}


@router.patch('/appointment-settings')
def update_appointment_settings(
    data: UpdateAppointmentSettingsRequest,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    changes = data.model_dump(exclude_none=True)

    try:
        current = settings_service.require_settings(db)
        start = changes.get('working_hours_start', current.working_hours_start)
        end = changes.get('working_hours_end', current.working_hours_end)
        if to_minutes(end) <= to_minutes(start):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Working hours end must be after the start.',
            )

        settings = settings_service.update_settings(db, changes, admin_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return {
        'message': 'Settings updated successfully',
        'settings': AppointmentSettingsResponse.model_validate(settings),
    }


@router.get('/subscriptions/{subscription_id}')
def read_subscription(
    subscription_id: int,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    try:
        subscription = db.get(Subscription, subscription_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if subscription is None:
        raise SubscriptionNotFound()

    return {'subscription': SubscriptionResponse.model_validate(subscription)}


@router.post('/subscriptions/{subscription_id}/consultations')
def set_consultations(
    subscription_id: int,
    data: UpdateConsultationsRequest,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    try:
        subscription = credits.admin_set(db, subscription_id, data.consultations, admin_id)
        db.commit()
        db.refresh(subscription)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
    except Exception:
        db.rollback()
        raise

    return {'subscription': SubscriptionResponse.model_validate(subscription)}


@router.get('/subscriptions/{subscription_id}/audit-logs')
def list_audit_logs(
    subscription_id: int,
    admin_id: int = Depends(require_admin_id),
    db: Session = Depends(get_db),
):
    try:
        logs = db.query(AuditLog).filter(
            AuditLog.subscription_id == subscription_id,
        ).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'logs': [AuditLogResponse.model_validate(log) for log in logs]}
