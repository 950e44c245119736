"""
Room disable period model.
Owner-declared intervals during which a room cannot be booked.

Periods are half-open [start, end) intervals of venue wall-clock time. Two
periods of the same room never overlap, and a period is never placed over a
slot that is already booked.
"""

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Optional

from database import get_db, transaction
from models.room import get_room_by_id
from models.shop import caller_owns_shop
from models.user import get_owner_by_id
from utils.datetime_helpers import format_datetime, get_now, load_datetime, parse_datetime
from utils.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from utils.time_slots import slot_start

logger = logging.getLogger(__name__)

MINIMUM_DURATION = timedelta(minutes=30)


# =============================================================================
# QUERIES
# =============================================================================

def _row_to_period(row) -> dict:
    period = dict(row)
    period['start_datetime'] = load_datetime(period['start_datetime'])
    period['end_datetime'] = load_datetime(period['end_datetime'])
    return period


def get_disable_period_by_id(period_id: int) -> Optional[dict]:
    """Get a disable period by ID."""
    db = get_db()
    row = db.execute('''
        SELECT p.*, r.name AS room_name, r.shop_id
        FROM room_disable_periods p
        JOIN rooms r ON p.room_id = r.id
        WHERE p.id = ?
    ''', (period_id,)).fetchone()
    return _row_to_period(row) if row else None


def find_overlapping_periods(room_id: int, start: datetime, end: datetime,
                             exclude_id: int = None) -> list:
    """
    Periods of a room whose interval intersects [start, end).

    Args:
        room_id: Room ID
        start: Interval start
        end: Interval end (exclusive)
        exclude_id: Period to ignore (the one being updated)
    """
    db = get_db()
    query = '''
        SELECT * FROM room_disable_periods
        WHERE room_id = ?
          AND start_datetime < ?
          AND end_datetime > ?
    '''
    params = [room_id, format_datetime(end), format_datetime(start)]

    if exclude_id is not None:
        query += ' AND id != ?'
        params.append(exclude_id)

    query += ' ORDER BY start_datetime'
    return [_row_to_period(row) for row in db.execute(query, params).fetchall()]


def is_room_disabled_at(room_id: int, instant: datetime) -> bool:
    """True if some period of the room satisfies start <= instant < end."""
    db = get_db()
    stamp = format_datetime(instant)
    row = db.execute('''
        SELECT 1 FROM room_disable_periods
        WHERE room_id = ?
          AND start_datetime <= ?
          AND end_datetime > ?
        LIMIT 1
    ''', (room_id, stamp, stamp)).fetchone()
    return row is not None


def is_room_disabled_during(room_id: int, start: datetime, end: datetime) -> bool:
    """True if any period of the room intersects [start, end)."""
    return bool(find_overlapping_periods(room_id, start, end))


def get_disable_periods_for_room(room_id: int, now: datetime = None) -> list:
    """
    Current and future disable periods of a room.

    Raises:
        NotFoundError: If the room does not exist
    """
    if get_room_by_id(room_id) is None:
        raise NotFoundError('Room not found', room_id=room_id)

    now = now or get_now()
    db = get_db()
    rows = db.execute('''
        SELECT * FROM room_disable_periods
        WHERE room_id = ? AND end_datetime > ?
        ORDER BY start_datetime
    ''', (room_id, format_datetime(now))).fetchall()
    return [_row_to_period(row) for row in rows]


def get_disable_periods_for_owner(owner_id: int) -> list:
    """
    All disable periods declared by an owner.

    Raises:
        NotFoundError: If the owner does not exist
    """
    if get_owner_by_id(owner_id) is None:
        raise NotFoundError('Owner not found', owner_id=owner_id)

    db = get_db()
    rows = db.execute('''
        SELECT p.*, r.name AS room_name
        FROM room_disable_periods p
        JOIN rooms r ON p.room_id = r.id
        WHERE p.owner_id = ?
        ORDER BY p.start_datetime
    ''', (owner_id,)).fetchall()
    return [_row_to_period(row) for row in rows]


def get_expiring_periods(hours: int = 24, now: datetime = None) -> list:
    """Periods ending within the next `hours` hours."""
    now = now or get_now()
    horizon = now + timedelta(hours=hours)
    db = get_db()
    rows = db.execute('''
        SELECT p.*, r.name AS room_name
        FROM room_disable_periods p
        JOIN rooms r ON p.room_id = r.id
        WHERE p.end_datetime BETWEEN ? AND ?
        ORDER BY p.end_datetime
    ''', (format_datetime(now), format_datetime(horizon))).fetchall()
    return [_row_to_period(row) for row in rows]


# =============================================================================
# VALIDATION
# =============================================================================

def _validate_interval(start: datetime, end: datetime):
    if end <= start:
        raise InvalidRequestError('Disable period end must be after its start')
    if end - start < MINIMUM_DURATION:
        raise InvalidRequestError('Disable period must be at least 30 minutes long')


def find_booked_slots_in_interval(room_id: int, start: datetime, end: datetime) -> list:
    """
    Booked slots of a room whose start instant falls inside [start, end).

    Returns:
        list: dicts with reservation_id, reservation_date, time_slot, slot_start
    """
    db = get_db()
    rows = db.execute('''
        SELECT reservation_id, reservation_date, time_slot
        FROM reservation_slots
        WHERE room_id = ?
          AND reservation_date BETWEEN ? AND ?
        ORDER BY reservation_date, time_slot
    ''', (room_id, start.date().isoformat(), end.date().isoformat())).fetchall()

    booked = []
    for row in rows:
        instant = slot_start(datetime.strptime(row['reservation_date'], '%Y-%m-%d').date(),
                             row['time_slot'])
        if start <= instant < end:
            booked.append({**dict(row), 'slot_start': instant})
    return booked


def _check_interval_is_free(room_id: int, start: datetime, end: datetime, exclude_id: int = None):
    if find_overlapping_periods(room_id, start, end, exclude_id=exclude_id):
        raise ConflictError('The specified time period overlaps with an existing disable period')

    booked = find_booked_slots_in_interval(room_id, start, end)
    if booked:
        first = booked[0]
        raise InvalidRequestError(
            'Cannot disable room during this period: there is an existing reservation '
            f"on {first['reservation_date']} at {first['time_slot']}",
            reservation_id=first['reservation_id'],
        )


# =============================================================================
# MUTATIONS
# =============================================================================

def create_disable_period(room_id: int, owner_id: int, start_datetime, end_datetime,
                          reason: str = None) -> dict:
    """
    Disable a room for an interval.

    Args:
        room_id: Room to disable
        owner_id: Owner declaring the period (must own the room's shop)
        start_datetime: Interval start (datetime or ISO string)
        end_datetime: Interval end, exclusive (datetime or ISO string)
        reason: Optional free text

    Returns:
        dict: The created period

    Raises:
        NotFoundError: Unknown room or owner
        ForbiddenError: Owner does not own the room's shop
        InvalidRequestError: Bad interval, or the interval covers a booked slot
        ConflictError: Overlaps another period of the room
    """
    start = parse_datetime(start_datetime, 'start_datetime')
    end = parse_datetime(end_datetime, 'end_datetime')

    room = get_room_by_id(room_id)
    if room is None:
        raise NotFoundError('Room not found', room_id=room_id)
    if get_owner_by_id(owner_id) is None:
        raise NotFoundError('Owner not found', owner_id=owner_id)
    if not caller_owns_shop(room['shop_id'], owner_id):
        raise ForbiddenError('You can only disable rooms in your own shop')

    _validate_interval(start, end)

    try:
        with transaction() as db:
            _check_interval_is_free(room_id, start, end)
            cursor = db.execute('''
                INSERT INTO room_disable_periods
                (room_id, owner_id, start_datetime, end_datetime, reason)
                VALUES (?, ?, ?, ?, ?)
            ''', (room_id, owner_id, format_datetime(start), format_datetime(end), reason))
            period_id = cursor.lastrowid
    except sqlite3.IntegrityError as e:
        raise ConflictError('The specified time period overlaps with an existing disable period') from e

    logger.info('Room %s disabled from %s to %s by owner %s', room_id, start, end, owner_id)
    return get_disable_period_by_id(period_id)


def update_disable_period(period_id: int, owner_id: int, start_datetime, end_datetime,
                          reason: str = None) -> dict:
    """
    Move or resize a disable period.

    Same rules as create_disable_period, with the period itself excluded from
    the overlap check.

    Raises:
        NotFoundError: Unknown period
        ForbiddenError: Caller did not declare the period
        InvalidRequestError: Bad interval, or the interval covers a booked slot
        ConflictError: Overlaps another period of the room
    """
    period = get_disable_period_by_id(period_id)
    if period is None:
        raise NotFoundError('Disable period not found', period_id=period_id)
    if period['owner_id'] != owner_id:
        raise ForbiddenError('You can only update your own disable periods')

    start = parse_datetime(start_datetime, 'start_datetime')
    end = parse_datetime(end_datetime, 'end_datetime')
    _validate_interval(start, end)

    try:
        with transaction() as db:
            _check_interval_is_free(period['room_id'], start, end, exclude_id=period_id)
            db.execute('''
                UPDATE room_disable_periods
                SET start_datetime = ?,
                    end_datetime = ?,
                    reason = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', (format_datetime(start), format_datetime(end), reason, period_id))
    except sqlite3.IntegrityError as e:
        raise ConflictError('The specified time period overlaps with an existing disable period') from e

    logger.info('Disable period %s moved to %s - %s', period_id, start, end)
    return get_disable_period_by_id(period_id)


def delete_disable_period(period_id: int, owner_id: int) -> bool:
    """
    Delete a disable period.

    Raises:
        NotFoundError: Unknown period
        ForbiddenError: Caller did not declare the period
    """
    period = get_disable_period_by_id(period_id)
    if period is None:
        raise NotFoundError('Disable period not found', period_id=period_id)
    if period['owner_id'] != owner_id:
        raise ForbiddenError('You can only delete your own disable periods')

    with transaction() as db:
        db.execute('DELETE FROM room_disable_periods WHERE id = ?', (period_id,))

    logger.info('Disable period %s deleted by owner %s', period_id, owner_id)
    return True


def cleanup_expired_periods(now: datetime = None) -> int:
    """Delete periods that ended before now. Returns the number removed."""
    now = now or get_now()
    with transaction() as db:
        cursor = db.execute(
            'DELETE FROM room_disable_periods WHERE end_datetime < ?',
            (format_datetime(now),)
        )
    return cursor.rowcount
