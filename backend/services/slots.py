"""Working-day slot template generation.

Times travel through the system as zero-padded ``"HH:MM"`` strings, the same
shape stored on appointments and blocked slots, so slots can be matched by
plain string equality.
"""

from datetime import date, datetime, time

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, '%H:%M').time()


def to_minutes(value: str) -> int:
    parsed = parse_hhmm(value)
    return parsed.hour * 60 + parsed.minute


def from_minutes(minutes: int) -> str:
    hours, remainder = divmod(minutes, 60)
    return f'{hours:02d}:{remainder:02d}'


def add_minutes(value: str, minutes: int) -> str:
    total = to_minutes(value) + minutes
    if total >= MINUTES_PER_DAY:
        raise ValueError('Slot would run past midnight.')
    return from_minutes(total)


def slot_start_datetime(slot_date: date, slot_start: str) -> datetime:
    return datetime.combine(slot_date, parse_hhmm(slot_start))


def generate_time_slots(start: str, end: str, duration: int, buffer: int) -> list[str]:
    """Return every slot start in ``[start, end)`` whose slot fits before ``end``.

    The cursor moves forward by ``duration + buffer``; a window shorter than one
    slot yields an empty list.
    """
    if duration <= 0 or buffer < 0:
        return []

    window_end = to_minutes(end)
    cursor = to_minutes(start)
    step_minutes = duration + buffer

    slots: list[str] = []
    while cursor + duration <= window_end:
        slots.append(from_minutes(cursor))
        cursor += step_minutes

    return slots
