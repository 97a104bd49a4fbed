"""Subscription model definitions."""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from backend.database import Base


class SubscriptionPlan(str, enum.Enum):
    MONTHLY = "monthly"
    SIX_MONTH = "six-month"
    ANNUAL = "annual"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class Subscription(Base):
    """A paid consultation plan and its remaining credits."""
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint("consultations_remaining >= 0", name="ck_subscriptions_credits_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    mobile_number = Column(String, nullable=False, index=True)
    bird_species = Column(String, nullable=False)
    plan = Column(String, nullable=False)
    subscription_start_date = Column(DateTime, nullable=False, server_default=func.now())
    subscription_end_date = Column(DateTime, nullable=False)
    amount_paid = Column(Integer, nullable=False)
    consultations_remaining = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default=SubscriptionStatus.ACTIVE.value)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
