"""
Booking validation and slot conflict detection.

validate_booking_request() runs the booking rules in a fixed order and stops
at the first violation, so callers always see the most fundamental problem.
"""

from datetime import date, datetime

from database import get_db
from models.device import allowed_reservation_types, is_type_compatible
from models.disable_period import is_room_disabled_at
from models.pricing import calculate_total_price, get_hourly_rate
from models.room import get_room_by_id
from utils.datetime_helpers import get_now, parse_date
from utils.errors import ConflictError, InvalidRequestError, NotFoundError
from utils.time_slots import (
    all_slot_labels, is_valid_slot_label, parse_time_label, slot_start, slot_to_minutes, sort_slots
)

RESERVATION_TYPES = ('single', 'multi', 'other')


# =============================================================================
# INDIVIDUAL RULES
# =============================================================================

def normalize_slot_request(time_slots) -> list:
    """
    Validate the shape of a requested slot list.

    Returns:
        list: Labels in chronological order

    Raises:
        InvalidRequestError: Empty list, malformed label or duplicate label
    """
    if not time_slots or isinstance(time_slots, str):
        raise InvalidRequestError('At least one time slot is required')

    for label in time_slots:
        if not is_valid_slot_label(label):
            raise InvalidRequestError(f'Invalid time slot {label!r}, expected HH:MM on a 30-minute grid')

    if len(set(time_slots)) != len(time_slots):
        raise InvalidRequestError('Time slots must not contain duplicates')

    return sort_slots(time_slots)


def check_reservation_type(reservation_type: str):
    """Raise InvalidRequestError unless the type is single, multi or other."""
    if reservation_type not in RESERVATION_TYPES:
        raise InvalidRequestError(
            f'Invalid reservation type {reservation_type!r}, expected one of {", ".join(RESERVATION_TYPES)}'
        )


def check_type_allowed_for_room(room: dict, reservation_type: str):
    """
    Rate and device rules shared by booking and split.

    Raises:
        InvalidRequestError: Rate missing/zero, or the device category does not accept the type
    """
    check_reservation_type(reservation_type)
    get_hourly_rate(room, reservation_type)

    if not is_type_compatible(room['device_category'], reservation_type):
        allowed = ', '.join(allowed_reservation_types(room['device_category'])) or 'none'
        raise InvalidRequestError(
            f"{room['device_name']} rooms cannot be booked as {reservation_type} (allowed: {allowed})"
        )


def check_not_in_past(reservation_date: date, time_slots: list, now: datetime):
    """Past dates are rejected; for today every slot must start strictly after now."""
    today = now.date()
    if reservation_date < today:
        raise InvalidRequestError('Cannot book a reservation for a past date')
    if reservation_date == today:
        for label in time_slots:
            if slot_start(reservation_date, label) <= now:
                raise InvalidRequestError(f'Time slot {label} has already started')


def check_operating_hours(room: dict, time_slots: list):
    """Every slot offset must lie within [opening, closing) of the room's shop."""
    opening = parse_time_label(room['opening_time'])
    closing = parse_time_label(room['closing_time'])

    for label in time_slots:
        minutes = slot_to_minutes(label)
        if minutes < opening or minutes >= closing:
            raise InvalidRequestError(
                f"Time slot {label} is outside shop operating hours "
                f"({room['opening_time']} - {room['closing_time']})"
            )


def check_room_not_disabled(room_id: int, reservation_date: date, time_slots: list):
    """No requested slot may start inside a disable period."""
    for label in time_slots:
        if is_room_disabled_at(room_id, slot_start(reservation_date, label)):
            raise InvalidRequestError(
                f'Room disabled at time slot {label} on {reservation_date.isoformat()}'
            )


def find_conflicting_slots(room_id: int, reservation_date: date, time_slots: list,
                           exclude_reservation_id: int = None) -> list:
    """
    Requested slots already claimed on the room/date.

    Returns:
        list: dicts with reservation_id and time_slot
    """
    if not time_slots:
        return []

    db = get_db()
    placeholders = ','.join('?' * len(time_slots))
    query = f'''
        SELECT reservation_id, time_slot
        FROM reservation_slots
        WHERE room_id = ?
          AND reservation_date = ?
          AND time_slot IN ({placeholders})
    '''
    params = [room_id, reservation_date.isoformat()] + list(time_slots)

    if exclude_reservation_id is not None:
        query += ' AND reservation_id != ?'
        params.append(exclude_reservation_id)

    query += ' ORDER BY time_slot'
    return [dict(row) for row in db.execute(query, params).fetchall()]


def check_no_conflicts(room_id: int, reservation_date: date, time_slots: list):
    """Raise ConflictError if any requested slot is already booked."""
    conflicts = find_conflicting_slots(room_id, reservation_date, time_slots)
    if conflicts:
        taken = ', '.join(c['time_slot'] for c in conflicts)
        raise ConflictError(f'Time slots are already booked: {taken}',
                            conflicts=[c['time_slot'] for c in conflicts])


# =============================================================================
# FULL VALIDATION
# =============================================================================

def validate_booking_request(room_id: int, reservation_date, reservation_type: str,
                             time_slots, now: datetime = None) -> dict:
    """
    Decide whether a booking request is legal.

    Order: input shape, room exists and is available, rate configured, device
    compatible, not in the past, within opening hours, not disabled, not
    already booked.

    Args:
        room_id: Room ID
        reservation_date: date or YYYY-MM-DD string
        reservation_type: single, multi or other
        time_slots: Requested HH:MM labels
        now: Clock reading for the whole check (defaults to venue time)

    Returns:
        dict: {'room', 'reservation_date', 'type', 'time_slots', 'total_price'}

    Raises:
        NotFoundError, InvalidRequestError, ConflictError
    """
    now = now or get_now()
    reservation_date = parse_date(reservation_date)
    check_reservation_type(reservation_type)
    slots = normalize_slot_request(time_slots)

    room = get_room_by_id(room_id)
    if room is None:
        raise NotFoundError('Room not found', room_id=room_id)
    if not room['is_available']:
        raise InvalidRequestError('Room is not available')

    check_type_allowed_for_room(room, reservation_type)
    check_not_in_past(reservation_date, slots, now)
    check_operating_hours(room, slots)
    check_room_not_disabled(room_id, reservation_date, slots)
    check_no_conflicts(room_id, reservation_date, slots)

    return {
        'room': room,
        'reservation_date': reservation_date,
        'type': reservation_type,
        'time_slots': slots,
        'total_price': calculate_total_price(room, reservation_type, len(slots)),
    }


def get_available_slots(room_id: int, reservation_date, now: datetime = None) -> list:
    """
    Slots of a day that a new booking could claim right now.

    Applies the time-based rules (opening hours, past, disabled, booked);
    rate and device rules depend on the type and are not considered.

    Raises:
        NotFoundError: If the room does not exist
    """
    now = now or get_now()
    reservation_date = parse_date(reservation_date)

    room = get_room_by_id(room_id)
    if room is None:
        raise NotFoundError('Room not found', room_id=room_id)
    if not room['is_available'] or reservation_date < now.date():
        return []

    opening = parse_time_label(room['opening_time'])
    closing = parse_time_label(room['closing_time'])
    candidates = [
        label for label in all_slot_labels()
        if opening <= slot_to_minutes(label) < closing
        and slot_start(reservation_date, label) > now
    ]
    booked = {c['time_slot'] for c in find_conflicting_slots(room_id, reservation_date, candidates)}

    return [
        label for label in candidates
        if label not in booked
        and not is_room_disabled_at(room_id, slot_start(reservation_date, label))
    ]
