"""Per-day slot availability."""

import enum
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.appointment_settings import AppointmentSettings
from backend.models.blocked_slot import BlockedSlot
from backend.services.settings import require_settings
from backend.services.slots import generate_time_slots


class SlotStatus(str, enum.Enum):
    AVAILABLE = 'available'
    BOOKED = 'booked'
    BLOCKED = 'blocked'


@dataclass(frozen=True)
class SlotAvailability:
    time: str
    status: SlotStatus

    @property
    def available(self) -> bool:
        return self.status is SlotStatus.AVAILABLE

    def as_dict(self) -> dict:
        return {'time': self.time, 'available': self.available, 'status': self.status.value}


@dataclass
class DayAvailability:
    date: date
    settings: AppointmentSettings
    slots: list[SlotAvailability] = field(default_factory=list)

    def times_with_status(self, status: SlotStatus) -> set[str]:
        return {slot.time for slot in self.slots if slot.status is status}


def get_booked_slot_starts(slot_date: date, db: Session) -> set[str]:
    rows = db.query(Appointment.slot_start_time).filter(
        Appointment.appointment_date == slot_date,
        Appointment.status != AppointmentStatus.CANCELED.value,
    ).all()
    return {slot_start for (slot_start,) in rows}


def get_blocked_slot_starts(slot_date: date, template: list[str], db: Session) -> set[str]:
    blocks = db.query(BlockedSlot.slot_start_time).filter(BlockedSlot.block_date == slot_date).all()

    blocked_start_times: set[str] = set()
    for (slot_start,) in blocks:
        if slot_start is None:
            blocked_start_times.update(template)
        else:
            blocked_start_times.add(slot_start)

    return blocked_start_times


def is_slot_blocked(slot_date: date, slot_start: str, db: Session) -> bool:
    block = db.query(BlockedSlot.id).filter(
        BlockedSlot.block_date == slot_date,
        (BlockedSlot.slot_start_time.is_(None)) | (BlockedSlot.slot_start_time == slot_start),
    ).first()
    return block is not None


def day_template(settings: AppointmentSettings) -> list[str]:
    return generate_time_slots(
        settings.working_hours_start,
        settings.working_hours_end,
        settings.slot_duration,
        settings.buffer_time,
    )


def resolve_availability(db: Session, slot_date: date) -> DayAvailability:
    settings = require_settings(db)
    template = day_template(settings)

    booked = get_booked_slot_starts(slot_date, db)
    blocked = get_blocked_slot_starts(slot_date, template, db)

    day = DayAvailability(date=slot_date, settings=settings)
    for slot_start in template:
        if slot_start in booked:
            slot_status = SlotStatus.BOOKED
        elif slot_start in blocked:
            slot_status = SlotStatus.BLOCKED
        else:
            slot_status = SlotStatus.AVAILABLE
        day.slots.append(SlotAvailability(time=slot_start, status=slot_status))

    return day
