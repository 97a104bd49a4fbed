from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_user_phone
from backend.database import ensure_appointment_schema, ensure_blocked_slot_schema, get_db
from backend.schemas import AppointmentResponse, AppointmentSettingsResponse, CamelModel
from backend.services import appointments as appointment_service
from backend.services.availability import resolve_availability
from backend.services.settings import get_settings
from backend.services.slots import parse_hhmm

router = APIRouter(tags=['appointments'])

MIN_SYMPTOMS_LENGTH = 10
MAX_SYMPTOMS_LENGTH = 2000
MAX_CANCELLATION_REASON_LENGTH = 500


def validate_hhmm(value: str) -> str:
    normalized = value.strip()
    try:
        parsed = parse_hhmm(normalized)
    except ValueError as exc:
        raise ValueError('Invalid time format') from exc
    return parsed.strftime('%H:%M')


class CreateAppointmentRequest(CamelModel):
    appointment_date: date
    slot_start_time: str
    slot_end_time: str
    bird_name: str
    symptoms: str

    @field_validator('slot_start_time', 'slot_end_time')
    @classmethod
    def validate_slot_time(cls, value: str) -> str:
        return validate_hhmm(value)

    @field_validator('bird_name')
    @classmethod
    def validate_bird_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Bird name is required')
        return normalized

    @field_validator('symptoms')
    @classmethod
    def validate_symptoms(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < MIN_SYMPTOMS_LENGTH:
            raise ValueError(
                f'Please provide at least {MIN_SYMPTOMS_LENGTH} characters describing the symptoms'
            )
        if len(normalized) > MAX_SYMPTOMS_LENGTH:
            raise ValueError(f'Symptoms must be {MAX_SYMPTOMS_LENGTH} characters or fewer.')
        return normalized


class CancelAppointmentRequest(BaseModel):
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_CANCELLATION_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_CANCELLATION_REASON_LENGTH} characters or fewer.')

        return normalized


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL and database credentials.',
    )


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
        ensure_blocked_slot_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/appointment-settings')
def read_appointment_settings(db: Session = Depends(get_db)):
    try:
        settings = get_settings(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'settings': AppointmentSettingsResponse.model_validate(settings) if settings else None}


@router.get('/appointments/available-slots')
def list_available_slots(
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        day = resolve_availability(db, slot_date)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {
        'date': slot_date.isoformat(),
        'slots': [slot.as_dict() for slot in day.slots],
        'settings': {
            'slotDuration': day.settings.slot_duration,
            'workingHours': {
                'start': day.settings.working_hours_start,
                'end': day.settings.working_hours_end,
            },
        },
    }


@router.get('/appointments')
def list_my_appointments(
    user_phone: str = Depends(require_user_phone),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointments = appointment_service.list_user_appointments(db, user_phone)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'appointments': [AppointmentResponse.model_validate(appointment) for appointment in appointments]}


@router.post('/appointments', status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    user_phone: str = Depends(require_user_phone),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = appointment_service.create_appointment(
            db,
            user_phone,
            appointment_date=data.appointment_date,
            slot_start_time=data.slot_start_time,
            slot_end_time=data.slot_end_time,
            bird_name=data.bird_name,
            symptoms=data.symptoms,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {
        'message': 'Appointment booked successfully!',
        'appointment': AppointmentResponse.model_validate(result.appointment),
        'remainingConsultations': result.remaining_consultations,
    }


@router.patch('/appointments/{appointment_id}/cancel')
def cancel_my_appointment(
    appointment_id: int,
    data: CancelAppointmentRequest | None = None,
    user_phone: str = Depends(require_user_phone),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = appointment_service.cancel_appointment(
            db,
            appointment_id,
            appointment_service.Actor.user(user_phone),
            data.reason if data else None,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return {'message': result.message, 'creditRestored': result.credit_restored}
