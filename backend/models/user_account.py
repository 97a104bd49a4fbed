"""User account model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from backend.database import Base


class UserAccount(Base):
    """A subscriber login, keyed by mobile number."""
    __tablename__ = "user_accounts"

    phone = Column(String, primary_key=True)
    password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
