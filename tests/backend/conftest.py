import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.auth.passwords import hash_password  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models import admin_user, appointment, appointment_settings, audit_log, blocked_slot  # noqa: E402,F401
from backend.models.admin_user import AdminUser  # noqa: E402
from backend.models.subscription import SubscriptionPlan, SubscriptionStatus  # noqa: E402
from backend.models.user_account import UserAccount  # noqa: E402
from backend.services.settings import ensure_default_settings  # noqa: E402
from backend.services.subscriptions import create_subscription  # noqa: E402

TEST_PASSWORD = 'Feathers#2025'


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def appointment_settings(db):
    return ensure_default_settings(db)


@pytest.fixture
def make_subscriber(db):
    def _make_subscriber(
        phone: str = '9876543210',
        *,
        plan: SubscriptionPlan = SubscriptionPlan.MONTHLY,
        consultations: int | None = None,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        start: datetime | None = None,
    ) -> UserAccount:
        subscription = create_subscription(
            db,
            full_name='Asha Rao',
            mobile_number=phone,
            bird_species='African Grey',
            plan=plan,
            start=start,
        )
        if consultations is not None:
            subscription.consultations_remaining = consultations
        subscription.status = status.value

        account = UserAccount(
            phone=phone,
            full_name='Asha Rao',
            password=hash_password(TEST_PASSWORD),
            subscription_id=subscription.id,
        )
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make_subscriber


@pytest.fixture
def admin(db):
    admin_user = AdminUser(mobile='+919000000001', full_name='Clinic Admin', password=hash_password(TEST_PASSWORD))
    db.add(admin_user)
    db.commit()
    db.refresh(admin_user)
    return admin_user
