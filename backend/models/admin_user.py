"""Admin user model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func
from backend.database import Base


class AdminUser(Base):
    """Represents a back-office administrator."""
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    mobile = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
