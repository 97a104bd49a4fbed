"""Audit log model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from backend.database import Base

UPDATED_CONSULTATIONS_ACTION = "updated_consultations"


class AuditLog(Base):
    """Records an admin change to a subscription."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("admin_users.id"), nullable=False)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String, nullable=False)
    previous_value = Column(String)
    new_value = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False, server_default=func.now())
