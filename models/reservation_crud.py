"""
Reservation create and read operations.
Booking runs validation and persistence in a single unit of work.
"""

import logging
import sqlite3
from datetime import datetime

from database import transaction
from models.reservation_availability import validate_booking_request
from models.reservation_queries import fetch_reservation
from models.reservation_state import STATUS_PENDING, apply_time_based_status
from models.user import get_user_by_id
from utils.datetime_helpers import get_now
from utils.errors import ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


# =============================================================================
# CREATE
# =============================================================================

def insert_reservation(db, room_id: int, user_id: int, reservation_date: str,
                       reservation_type: str, total_price: float, status: str,
                       time_slots: list, split_from_id: int = None, created_by=None) -> int:
    """
    Insert a reservation and its slot rows on an open transaction.

    Raises:
        sqlite3.IntegrityError: If a (room, date, slot) triple is already claimed
    """
    cursor = db.execute('''
        INSERT INTO reservations
        (room_id, user_id, reservation_date, type, total_price, status, split_from_id)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    ''', (room_id, user_id, reservation_date, reservation_type, total_price, status, split_from_id))
    reservation_id = cursor.lastrowid

    db.executemany('''
        INSERT INTO reservation_slots (reservation_id, room_id, reservation_date, time_slot)
        VALUES (?, ?, ?, ?)
    ''', [(reservation_id, room_id, reservation_date, label) for label in time_slots])

    db.execute('''
        INSERT INTO reservation_status_history
        (reservation_id, old_status, new_status, changed_by, notes)
        VALUES (?, NULL, ?, ?, ?)
    ''', (reservation_id, status, str(created_by or user_id),
          'Created by split' if split_from_id else 'Reservation created'))

    return reservation_id


def book_reservation(room_id: int, reservation_date, reservation_type: str, time_slots,
                     user_id: int, now: datetime = None) -> dict:
    """
    Book slots on a room for a customer.

    Args:
        room_id: Room ID
        reservation_date: date or YYYY-MM-DD string
        reservation_type: single, multi or other
        time_slots: HH:MM labels to claim
        user_id: Booking customer
        now: Clock reading for the whole operation

    Returns:
        dict: The hydrated reservation (status pending)

    Raises:
        NotFoundError: Unknown room or user
        InvalidRequestError: Request violates a booking rule
        ConflictError: A requested slot is already booked
    """
    now = now or get_now()

    if get_user_by_id(user_id) is None:
        raise NotFoundError('User not found', user_id=user_id)

    try:
        with transaction() as db:
            booking = validate_booking_request(room_id, reservation_date, reservation_type,
                                               time_slots, now=now)
            reservation_id = insert_reservation(
                db,
                room_id=room_id,
                user_id=user_id,
                reservation_date=booking['reservation_date'].isoformat(),
                reservation_type=reservation_type,
                total_price=booking['total_price'],
                status=STATUS_PENDING,
                time_slots=booking['time_slots'],
            )
    except sqlite3.IntegrityError as e:
        raise ConflictError('Time slots are already booked') from e

    logger.info('Reservation %s booked: room %s on %s slots %s for user %s',
                reservation_id, room_id, booking['reservation_date'],
                ','.join(booking['time_slots']), user_id)
    return fetch_reservation(reservation_id)


# =============================================================================
# READ
# =============================================================================

def get_reservation_by_id(reservation_id: int, now: datetime = None) -> dict:
    """
    Get a reservation, bringing its status up to date with the clock first.

    Raises:
        NotFoundError: If the reservation does not exist
    """
    now = now or get_now()
    reservation = fetch_reservation(reservation_id)
    if reservation is None:
        raise NotFoundError('Reservation not found', reservation_id=reservation_id)
    return apply_time_based_status(reservation, now)


def get_reservation_for_viewer(reservation_id: int, user_id: int = None, owner_id: int = None,
                               now: datetime = None) -> dict:
    """
    Get a reservation on behalf of its customer or the owner of its shop.

    Raises:
        NotFoundError: Unknown reservation
        ForbiddenError: Caller is neither the customer nor the shop owner
    """
    reservation = fetch_reservation(reservation_id)
    if reservation is None:
        raise NotFoundError('Reservation not found', reservation_id=reservation_id)

    is_customer = user_id is not None and reservation['user_id'] == user_id
    is_owner = owner_id is not None and reservation['shop']['owner_id'] == owner_id
    if not (is_customer or is_owner):
        raise ForbiddenError('You can only access your own reservations')

    return apply_time_based_status(reservation, now or get_now())


def refresh_statuses(reservations: list, now: datetime = None) -> list:
    """Apply the time-based status update to a list of loaded reservations."""
    now = now or get_now()
    return [apply_time_based_status(reservation, now) for reservation in reservations]
