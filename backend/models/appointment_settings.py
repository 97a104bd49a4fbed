"""Appointment settings model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from backend.database import Base

DEFAULT_SLOT_DURATION = 30
DEFAULT_BUFFER_TIME = 0
DEFAULT_WORKING_HOURS_START = "10:00"
DEFAULT_WORKING_HOURS_END = "17:00"
DEFAULT_MAX_ADVANCE_BOOKING_DAYS = 30


class AppointmentSettings(Base):
    """Singleton row driving slot generation."""
    __tablename__ = "appointment_settings"

    id = Column(Integer, primary_key=True)
    slot_duration = Column(Integer, nullable=False, default=DEFAULT_SLOT_DURATION)
    buffer_time = Column(Integer, nullable=False, default=DEFAULT_BUFFER_TIME)
    working_hours_start = Column(String(5), nullable=False, default=DEFAULT_WORKING_HOURS_START)
    working_hours_end = Column(String(5), nullable=False, default=DEFAULT_WORKING_HOURS_END)
    timezone = Column(String, nullable=False, default="Asia/Kolkata")
    max_advance_booking_days = Column(Integer, nullable=False, default=DEFAULT_MAX_ADVANCE_BOOKING_DAYS)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
    updated_by = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
