"""Consultation credit ledger.

Every function here works inside the caller's transaction and never commits.
Increments and decrements are single conditional UPDATE statements so two
concurrent requests cannot lose an update or push the balance below zero.
"""

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from backend.core.errors import (
    InvalidConsultationCount,
    NoActiveSubscription,
    NoCreditsRemaining,
    SubscriptionNotFound,
)
from backend.models.audit_log import UPDATED_CONSULTATIONS_ACTION, AuditLog
from backend.models.subscription import Subscription, SubscriptionStatus
from backend.services.subscriptions import effective_status

logger = logging.getLogger(__name__)

MAX_ADMIN_CONSULTATIONS = 1000


def _get_subscription(db: Session, subscription_id: int) -> Subscription:
    subscription = db.get(Subscription, subscription_id)
    if subscription is None:
        raise SubscriptionNotFound()
    return subscription


def deduct(db: Session, subscription_id: int, now: datetime | None = None) -> int:
    subscription = _get_subscription(db, subscription_id)

    if effective_status(subscription, now) is not SubscriptionStatus.ACTIVE:
        raise NoActiveSubscription()
    if (subscription.consultations_remaining or 0) <= 0:
        raise NoCreditsRemaining()

    result = db.execute(
        update(Subscription)
        .where(
            Subscription.id == subscription_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Subscription.consultations_remaining > 0,
        )
        .values(consultations_remaining=Subscription.consultations_remaining - 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(subscription)

    if result.rowcount == 0:
        if subscription.consultations_remaining <= 0:
            raise NoCreditsRemaining()
        raise NoActiveSubscription()

    return subscription.consultations_remaining


def restore(db: Session, subscription_id: int) -> int:
    subscription = _get_subscription(db, subscription_id)

    db.execute(
        update(Subscription)
        .where(Subscription.id == subscription_id)
        .values(consultations_remaining=Subscription.consultations_remaining + 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(subscription)

    return subscription.consultations_remaining


def admin_set(db: Session, subscription_id: int, value: int, admin_id: int) -> Subscription:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_ADMIN_CONSULTATIONS:
        raise InvalidConsultationCount()

    subscription = _get_subscription(db, subscription_id)
    previous_value = subscription.consultations_remaining

    subscription.consultations_remaining = value
    if value == 0:
        subscription.status = SubscriptionStatus.EXHAUSTED.value

    db.add(
        AuditLog(
            admin_id=admin_id,
            subscription_id=subscription_id,
            action=UPDATED_CONSULTATIONS_ACTION,
            previous_value=str(previous_value),
            new_value=str(value),
            timestamp=datetime.now(),
        )
    )
    db.flush()

    logger.info(
        'Admin %s set consultations for subscription %s: %s -> %s',
        admin_id,
        subscription_id,
        previous_value,
        value,
    )
    return subscription
