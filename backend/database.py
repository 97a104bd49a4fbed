from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config

connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False
_blocked_slot_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('cancellation_reason', 'ALTER TABLE appointments ADD COLUMN cancellation_reason VARCHAR'),
            ('credit_restored', 'ALTER TABLE appointments ADD COLUMN credit_restored BOOLEAN NOT NULL DEFAULT FALSE'),
            ('admin_notes', 'ALTER TABLE appointments ADD COLUMN admin_notes VARCHAR'),
            ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot '
                    "ON appointments(appointment_date, slot_start_time) WHERE status != 'canceled'"
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_user_date ON appointments(user_phone, appointment_date)')
            )

        _appointment_schema_checked = True


def ensure_blocked_slot_schema() -> None:
    global _blocked_slot_schema_checked

    if _blocked_slot_schema_checked:
        return

    with _schema_lock:
        if _blocked_slot_schema_checked:
            return

        inspector = inspect(engine)

        if 'blocked_slots' not in inspector.get_table_names():
            _blocked_slot_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_blocked_slots_date ON blocked_slots(block_date, slot_start_time)')
            )

        _blocked_slot_schema_checked = True
