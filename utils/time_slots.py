"""
Time slot helpers.

A slot is a 30-minute booking unit labelled "HH:MM" on a grid running from
00:00 to 23:30 (48 labels per day).
"""

import re
from datetime import date, datetime, time, timedelta

from utils.errors import InvalidRequestError

SLOT_MINUTES = 30
SLOTS_PER_DAY = 24 * 60 // SLOT_MINUTES
SLOT_DURATION = timedelta(minutes=SLOT_MINUTES)

_LABEL_RE = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def parse_time_label(label: str) -> int:
    """
    Convert an "HH:MM" string to minutes since midnight.

    Used for both slot labels and shop opening/closing times, which are not
    required to sit on the slot grid.

    Raises:
        InvalidRequestError: If the label is not a valid HH:MM time
    """
    match = _LABEL_RE.match(label) if isinstance(label, str) else None
    if not match:
        raise InvalidRequestError(f'Invalid time {label!r}, expected HH:MM')
    return int(match.group(1)) * 60 + int(match.group(2))


def is_valid_slot_label(label: str) -> bool:
    """True if label is an HH:MM value on the 30-minute grid."""
    try:
        return parse_time_label(label) % SLOT_MINUTES == 0
    except InvalidRequestError:
        return False


def slot_to_minutes(label: str) -> int:
    """Minute offset of a slot label, enforcing the 30-minute grid."""
    minutes = parse_time_label(label)
    if minutes % SLOT_MINUTES:
        raise InvalidRequestError(f'Time slot {label} is not on the {SLOT_MINUTES}-minute grid')
    return minutes


def minutes_to_label(minutes: int) -> str:
    """Inverse of parse_time_label for offsets within a day."""
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def all_slot_labels() -> list:
    """Every slot label of a day in chronological order."""
    return [minutes_to_label(i * SLOT_MINUTES) for i in range(SLOTS_PER_DAY)]


def slot_start(day: date, label: str) -> datetime:
    """Wall-clock instant at which the slot starts on the given date."""
    return datetime.combine(day, time.min) + timedelta(minutes=slot_to_minutes(label))


def slot_end(day: date, label: str) -> datetime:
    """Wall-clock instant at which the slot ends (23:30 ends at next midnight)."""
    return slot_start(day, label) + SLOT_DURATION


def sort_slots(labels) -> list:
    """Return labels in chronological order."""
    return sorted(labels, key=slot_to_minutes)


def slot_window(day: date, labels) -> tuple:
    """
    Half-open window [earliest slot start, latest slot start + 30 min).

    Returns:
        tuple: (start, end) datetimes, or None when labels is empty
    """
    if not labels:
        return None
    ordered = sort_slots(labels)
    return slot_start(day, ordered[0]), slot_end(day, ordered[-1])
