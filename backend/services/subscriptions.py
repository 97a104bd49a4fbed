"""Subscription plans and read-time subscription state."""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from backend.models.subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from backend.models.user_account import UserAccount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanTerms:
    months: int
    consultations: int
    amount: int


PLAN_TERMS = {
    SubscriptionPlan.MONTHLY: PlanTerms(months=1, consultations=2, amount=2200),
    SubscriptionPlan.SIX_MONTH: PlanTerms(months=6, consultations=18, amount=12375),
    SubscriptionPlan.ANNUAL: PlanTerms(months=12, consultations=48, amount=23100),
}


def add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def create_subscription(
    db: Session,
    *,
    full_name: str,
    mobile_number: str,
    bird_species: str,
    plan: SubscriptionPlan,
    start: datetime | None = None,
) -> Subscription:
    terms = PLAN_TERMS[plan]
    start = start or datetime.now()

    subscription = Subscription(
        full_name=full_name,
        mobile_number=mobile_number,
        bird_species=bird_species,
        plan=plan.value,
        subscription_start_date=start,
        subscription_end_date=add_months(start, terms.months),
        amount_paid=terms.amount,
        consultations_remaining=terms.consultations,
        status=SubscriptionStatus.ACTIVE.value,
    )
    db.add(subscription)
    db.flush()
    logger.info('Created %s subscription %s for %s', plan.value, subscription.id, mobile_number)
    return subscription


def effective_status(subscription: Subscription, now: datetime | None = None) -> SubscriptionStatus:
    """Status as seen at ``now``: an active plan past its end date reads as expired."""
    stored = SubscriptionStatus(subscription.status)
    now = now or datetime.now()

    if stored is SubscriptionStatus.ACTIVE and subscription.subscription_end_date < now:
        return SubscriptionStatus.EXPIRED
    return stored


def get_user_subscription(db: Session, user_phone: str, *, for_update: bool = False) -> Subscription | None:
    account = db.query(UserAccount).filter(UserAccount.phone == user_phone).first()
    if account is None or account.subscription_id is None:
        return None

    query = db.query(Subscription).filter(Subscription.id == account.subscription_id)
    if for_update:
        query = query.with_for_update()
    return query.first()
