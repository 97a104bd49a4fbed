"""Appointment model definitions."""

import enum

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, func, text
from backend.database import Base


class AppointmentStatus(str, enum.Enum):
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELED = "canceled"
    MISSED = "missed"


class CanceledBy(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Appointment(Base):
    """Represents a booked consultation slot."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "slot_start_time",
            unique=True,
            postgresql_where=text("status != 'canceled'"),
            sqlite_where=text("status != 'canceled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_phone = Column(String, ForeignKey("user_accounts.phone", ondelete="CASCADE"), nullable=False, index=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False)
    bird_name = Column(String, nullable=False)
    appointment_date = Column(Date, nullable=False, index=True)
    slot_start_time = Column(String(5), nullable=False)
    slot_end_time = Column(String(5), nullable=False)
    symptoms = Column(String, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.BOOKED.value)
    canceled_at = Column(DateTime)
    canceled_by = Column(String)
    cancellation_reason = Column(String)
    credit_restored = Column(Boolean, nullable=False, default=False)
    admin_notes = Column(String)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
