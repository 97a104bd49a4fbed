import logging

from sqlalchemy.orm import Session

from backend.core.errors import SettingsNotConfigured
from backend.models.appointment_settings import AppointmentSettings

logger = logging.getLogger(__name__)


def get_settings(db: Session) -> AppointmentSettings | None:
    return db.query(AppointmentSettings).order_by(AppointmentSettings.id.asc()).first()


def require_settings(db: Session) -> AppointmentSettings:
    settings = get_settings(db)
    if settings is None:
        raise SettingsNotConfigured()
    return settings


def ensure_default_settings(db: Session) -> AppointmentSettings:
    settings = get_settings(db)
    if settings is not None:
        return settings

    settings = AppointmentSettings()
    db.add(settings)
    db.commit()
    db.refresh(settings)
    logger.info('Seeded default appointment settings (id=%s).', settings.id)
    return settings


def update_settings(db: Session, changes: dict, admin_id: int) -> AppointmentSettings:
    settings = require_settings(db)

    for field_name, value in changes.items():
        setattr(settings, field_name, value)
    settings.updated_by = admin_id

    db.commit()
    db.refresh(settings)
    logger.info('Admin %s updated appointment settings: %s', admin_id, sorted(changes))
    return settings

