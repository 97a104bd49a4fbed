"""Blocked slot model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, func
from backend.database import Base


class BlockedSlot(Base):
    """An admin-declared unavailable window; no start time means the whole day."""
    __tablename__ = "blocked_slots"

    id = Column(Integer, primary_key=True, index=True)
    block_date = Column(Date, nullable=False, index=True)
    slot_start_time = Column(String(5))
    slot_end_time = Column(String(5))
    reason = Column(String, nullable=False)
    blocked_by = Column(Integer, ForeignKey("admin_users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
