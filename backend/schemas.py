"""Response models shared by the public and admin routers."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AppointmentSettingsResponse(CamelModel):
    id: int
    slot_duration: int
    buffer_time: int
    working_hours_start: str
    working_hours_end: str
    timezone: str
    max_advance_booking_days: int
    updated_at: datetime | None = None
    updated_by: int | None = None


class AppointmentResponse(CamelModel):
    id: int
    user_phone: str
    subscription_id: int
    bird_name: str
    appointment_date: date
    slot_start_time: str
    slot_end_time: str
    symptoms: str
    status: str
    canceled_at: datetime | None = None
    canceled_by: str | None = None
    cancellation_reason: str | None = None
    credit_restored: bool = False
    admin_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdminAppointmentResponse(AppointmentResponse):
    full_name: str | None = None
    subscription_plan: str | None = None


class SubscriptionResponse(CamelModel):
    id: int
    full_name: str
    mobile_number: str
    bird_species: str
    plan: str
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime
    amount_paid: int
    consultations_remaining: int
    status: str
    created_at: datetime | None = None


class BlockedSlotResponse(CamelModel):
    id: int
    block_date: date
    slot_start_time: str | None = None
    slot_end_time: str | None = None
    reason: str
    blocked_by: int
    created_at: datetime | None = None


class AuditLogResponse(CamelModel):
    id: int
    admin_id: int
    subscription_id: int
    action: str
    previous_value: str | None = None
    new_value: str
    timestamp: datetime | None = None


class UserAccountResponse(CamelModel):
    phone: str
    full_name: str
    subscription_id: int | None = None
    created_at: datetime | None = None


class AdminUserResponse(CamelModel):
    id: int
    mobile: str
    full_name: str
    created_at: datetime | None = None
