"""
Reservation status management.
Time-driven status progression, owner-initiated transitions and status history.

Statuses:
    pending -> in_progress -> completed
    in_progress -> no_show
    payment_success is a payment marker reachable from any status.
"""

import logging
from datetime import datetime
from typing import Optional

from database import get_db, transaction
from models.reservation_queries import fetch_reservation, get_reservation_ids_for_sweep
from models.shop import caller_owns_shop
from utils.datetime_helpers import get_now, parse_date
from utils.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from utils.time_slots import slot_window

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_PENDING = 'pending'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_NO_SHOW = 'no_show'
STATUS_COMPLETED = 'completed'
STATUS_PAYMENT_SUCCESS = 'payment_success'

RESERVATION_STATUSES = (
    STATUS_PENDING,
    STATUS_IN_PROGRESS,
    STATUS_NO_SHOW,
    STATUS_COMPLETED,
    STATUS_PAYMENT_SUCCESS,
)

# Statuses the time-based update still moves forward
TIME_DRIVEN_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS)

SYSTEM_ACTOR = 'system'

TRANSITION_ERRORS = {
    STATUS_PENDING: 'Cannot set status to pending for active or finished reservations',
    STATUS_IN_PROGRESS: 'Can only set to in_progress from pending while the reservation time slot is active',
    STATUS_NO_SHOW: 'Can only set to no_show for reservations that were in_progress or have finished',
    STATUS_COMPLETED: 'Cannot mark as completed before the reservation time has finished',
}


# =============================================================================
# SLOT WINDOW
# =============================================================================

def get_reservation_window(reservation: dict) -> Optional[tuple]:
    """[earliest slot start, latest slot start + 30 min) on the reservation date."""
    return slot_window(parse_date(reservation['reservation_date']), reservation.get('slots') or [])


def is_window_active(window: Optional[tuple], now: datetime) -> bool:
    """True while now lies inside the half-open slot window."""
    if window is None:
        return False
    start, end = window
    return start <= now < end


def is_window_finished(window: Optional[tuple], now: datetime) -> bool:
    """True once the whole slot window has elapsed."""
    if window is None:
        return False
    return now >= window[1]


# =============================================================================
# TRANSITION RULES
# =============================================================================

def compute_time_based_status(reservation: dict, now: datetime) -> str:
    """
    Status the reservation should have at `now` if only time mattered.

    A pending reservation whose window already elapsed goes straight to
    completed. Statuses other than pending/in_progress never change.
    """
    status = reservation['status']
    window = get_reservation_window(reservation)

    if status == STATUS_PENDING:
        if is_window_finished(window, now):
            return STATUS_COMPLETED
        if is_window_active(window, now):
            return STATUS_IN_PROGRESS
    elif status == STATUS_IN_PROGRESS:
        if is_window_finished(window, now):
            return STATUS_COMPLETED

    return status


def can_transition(current: str, target: str, window: Optional[tuple], now: datetime) -> bool:
    """
    Whether an owner may move a reservation from `current` to `target` at `now`.

    Args:
        current: Stored status
        target: Requested status
        window: Slot window from get_reservation_window()
        now: Clock reading

    Returns:
        bool: False for unknown targets as well as rule violations
    """
    active = is_window_active(window, now)
    finished = is_window_finished(window, now)

    if target == STATUS_PENDING:
        return not active and not finished
    if target == STATUS_IN_PROGRESS:
        return current == STATUS_PENDING and active
    if target == STATUS_NO_SHOW:
        return current == STATUS_IN_PROGRESS or finished
    if target == STATUS_COMPLETED:
        return current != STATUS_PENDING or finished
    if target == STATUS_PAYMENT_SUCCESS:
        return True
    return False


# =============================================================================
# PERSISTENCE
# =============================================================================

def record_status_change(db, reservation_id: int, old_status: str, new_status: str,
                         changed_by: str, notes: str = None):
    """Write the new status and append a history row (caller owns the transaction)."""
    db.execute('''
        UPDATE reservations
        SET status = ?,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (new_status, reservation_id))

    db.execute('''
        INSERT INTO reservation_status_history
        (reservation_id, old_status, new_status, changed_by, notes)
        VALUES (?, ?, ?, ?, ?)
    ''', (reservation_id, old_status, new_status, str(changed_by), notes))


def apply_time_based_status(reservation: dict, now: datetime) -> dict:
    """
    Persist the time-derived status of an already loaded reservation.

    Writes only when the computed status differs from the stored one, so
    repeated calls with the same clock are no-ops.
    """
    new_status = compute_time_based_status(reservation, now)
    if new_status == reservation['status']:
        return reservation

    with transaction() as db:
        # Re-read inside the write lock; another request may have moved it already
        row = db.execute('SELECT status FROM reservations WHERE id = ?',
                         (reservation['id'],)).fetchone()
        if row is None or row['status'] != reservation['status']:
            reservation['status'] = row['status'] if row else reservation['status']
            return reservation
        record_status_change(db, reservation['id'], reservation['status'], new_status,
                             SYSTEM_ACTOR, 'Automatic update based on time')

    logger.info('Reservation %s moved %s -> %s by clock', reservation['id'],
                reservation['status'], new_status)
    reservation['status'] = new_status
    return reservation


def update_reservation_status_based_on_time(reservation_id: int, now: datetime = None) -> dict:
    """
    Advance one reservation's status from the clock.

    Raises:
        NotFoundError: If the reservation does not exist
    """
    now = now or get_now()
    reservation = fetch_reservation(reservation_id)
    if reservation is None:
        raise NotFoundError('Reservation not found', reservation_id=reservation_id)
    return apply_time_based_status(reservation, now)


def sweep_reservation_statuses(now: datetime = None) -> int:
    """
    Time-based update for every pending/in_progress reservation dated today or earlier.

    Returns:
        int: Number of reservations whose status changed
    """
    now = now or get_now()
    changed = 0
    for reservation_id in get_reservation_ids_for_sweep(TIME_DRIVEN_STATUSES, now.date().isoformat()):
        reservation = fetch_reservation(reservation_id)
        if reservation is None:
            continue
        before = reservation['status']
        if apply_time_based_status(reservation, now)['status'] != before:
            changed += 1

    logger.info('Status sweep at %s changed %d reservation(s)', now, changed)
    return changed


# =============================================================================
# OWNER TRANSITIONS
# =============================================================================

def load_reservation_for_owner(reservation_id: int, owner_id: int) -> dict:
    """
    Load a reservation on behalf of the owner of its shop.

    Raises:
        NotFoundError: Unknown reservation
        ForbiddenError: Caller does not own the shop
    """
    reservation = fetch_reservation(reservation_id)
    if reservation is None:
        raise NotFoundError('Reservation not found', reservation_id=reservation_id)
    if not caller_owns_shop(reservation['shop']['id'], owner_id):
        raise ForbiddenError('You can only manage reservations for your own shops')
    return reservation


def set_reservation_status(reservation_id: int, new_status: str, owner_id: int,
                           now: datetime = None) -> dict:
    """
    Owner-initiated status change.

    Args:
        reservation_id: Reservation ID
        new_status: Target status
        owner_id: Caller; must own the shop of the reservation's room
        now: Clock reading for the whole operation

    Returns:
        dict: Reservation with the new status

    Raises:
        NotFoundError: Unknown reservation
        ForbiddenError: Caller does not own the shop
        InvalidRequestError: Unknown target status
        ConflictError: Transition not allowed at this time
    """
    now = now or get_now()
    if new_status not in RESERVATION_STATUSES:
        raise InvalidRequestError(f'Invalid status {new_status!r}')

    with transaction() as db:
        reservation = load_reservation_for_owner(reservation_id, owner_id)
        old_status = reservation['status']
        window = get_reservation_window(reservation)

        if not can_transition(old_status, new_status, window, now):
            raise ConflictError(TRANSITION_ERRORS.get(new_status, 'Invalid status transition'),
                                current_status=old_status, requested_status=new_status)

        record_status_change(db, reservation_id, old_status, new_status, owner_id,
                             f'Owner changed status from {old_status} to {new_status}')

    logger.info('Reservation %s moved %s -> %s by owner %s', reservation_id,
                old_status, new_status, owner_id)
    reservation['status'] = new_status
    return reservation


def get_valid_transitions(reservation_id: int, owner_id: int, now: datetime = None) -> list:
    """
    Statuses set_reservation_status would currently accept, excluding the current one.

    Raises:
        NotFoundError: Unknown reservation
        ForbiddenError: Caller does not own the shop
    """
    now = now or get_now()
    reservation = load_reservation_for_owner(reservation_id, owner_id)
    current = reservation['status']
    window = get_reservation_window(reservation)

    return [
        status for status in RESERVATION_STATUSES
        if status != current and can_transition(current, status, window, now)
    ]


def get_status_history(reservation_id: int) -> list:
    """Status change history of a reservation, oldest first."""
    db = get_db()
    rows = db.execute('''
        SELECT * FROM reservation_status_history
        WHERE reservation_id = ?
        ORDER BY id
    ''', (reservation_id,)).fetchall()
    return [dict(row) for row in rows]
