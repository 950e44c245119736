"""
Splitting in-progress reservations.

An owner can turn the slots of an in-progress reservation that have not
started yet into several new reservations with their own types, e.g. when a
single player is joined by friends halfway through. The part already played
stays on the original reservation, which is completed and re-priced.
"""

import logging
import sqlite3
from datetime import datetime

from database import transaction
from models.pricing import calculate_total_price
from models.reservation_availability import check_type_allowed_for_room
from models.reservation_crud import insert_reservation
from models.reservation_queries import fetch_reservation
from models.reservation_state import (
    STATUS_COMPLETED, STATUS_IN_PROGRESS, apply_time_based_status, load_reservation_for_owner,
    record_status_change
)
from models.room import get_room_by_id
from utils.datetime_helpers import get_now, parse_date
from utils.errors import ConflictError, InvalidRequestError
from utils.time_slots import slot_start

logger = logging.getLogger(__name__)

MIN_SPLIT_GROUPS = 2
MIN_REMAINING_SLOTS = 2


# =============================================================================
# PARTITION
# =============================================================================

def partition_slots(reservation: dict, now: datetime) -> tuple:
    """
    Split a reservation's slots into (consumed, remaining).

    A slot is consumed once its start instant is at or before now.
    Both lists keep chronological order.
    """
    day = parse_date(reservation['reservation_date'])
    consumed, remaining = [], []
    for label in reservation['slots']:
        if slot_start(day, label) <= now:
            consumed.append(label)
        else:
            remaining.append(label)
    return consumed, remaining


def can_split(reservation: dict, consumed: list, remaining: list) -> bool:
    """Split needs an in-progress reservation with a started slot and two movable ones."""
    return (
        reservation['status'] == STATUS_IN_PROGRESS
        and len(remaining) >= MIN_REMAINING_SLOTS
        and len(consumed) > 0
    )


def _load_current(reservation_id: int, owner_id: int, now: datetime) -> dict:
    """Owner-checked load with the status brought up to date with the clock."""
    reservation = load_reservation_for_owner(reservation_id, owner_id)
    return apply_time_based_status(reservation, now)


def get_remaining_slots(reservation_id: int, owner_id: int, now: datetime = None) -> dict:
    """
    Which slots of a reservation are consumed and which could still be split off.

    Returns:
        dict: {'reservation_id', 'status', 'all_slots', 'consumed_slots',
               'remaining_slots', 'can_split'}

    Raises:
        NotFoundError: Unknown reservation
        ForbiddenError: Caller does not own the shop
    """
    now = now or get_now()
    reservation = _load_current(reservation_id, owner_id, now)
    consumed, remaining = partition_slots(reservation, now)

    return {
        'reservation_id': reservation['id'],
        'status': reservation['status'],
        'all_slots': list(reservation['slots']),
        'consumed_slots': consumed,
        'remaining_slots': remaining,
        'can_split': can_split(reservation, consumed, remaining),
    }


# =============================================================================
# SPLIT
# =============================================================================

def _normalize_groups(groups) -> list:
    if not isinstance(groups, (list, tuple)):
        raise InvalidRequestError('new_reservations must be a list')

    normalized = []
    for index, group in enumerate(groups, start=1):
        if not isinstance(group, dict):
            raise InvalidRequestError(f'Group {index} must be an object with slot_count and type')
        slot_count = group.get('slot_count')
        if isinstance(slot_count, bool) or not isinstance(slot_count, int) or slot_count < 1:
            raise InvalidRequestError(f'Group {index} slot_count must be a positive integer')
        normalized.append({'slot_count': slot_count, 'type': group.get('type')})
    return normalized


def _validate_split(reservation: dict, room: dict, groups: list, consumed: list, remaining: list):
    if reservation['status'] != STATUS_IN_PROGRESS:
        raise InvalidRequestError('Only in-progress reservations can be split')
    if not consumed:
        raise InvalidRequestError('Cannot split a reservation before any of its slots has started')
    if len(remaining) < MIN_REMAINING_SLOTS:
        raise InvalidRequestError('At least two remaining slots are required to split a reservation')
    if len(groups) < MIN_SPLIT_GROUPS:
        raise InvalidRequestError('A split must create at least two new reservations')

    requested = sum(group['slot_count'] for group in groups)
    if requested != len(remaining):
        raise InvalidRequestError(
            f'Slot counts add up to {requested} but the reservation has {len(remaining)} remaining slots'
        )

    for group in groups:
        check_type_allowed_for_room(room, group['type'])


def split_reservation(reservation_id: int, owner_id: int, groups, now: datetime = None) -> dict:
    """
    Move the unstarted slots of an in-progress reservation into new reservations.

    Args:
        reservation_id: Reservation to split
        owner_id: Caller; must own the shop
        groups: Ordered [{'slot_count': int, 'type': str}, ...]; group i takes
            the next slot_count remaining slots in chronological order
        now: Clock reading for the whole operation

    Returns:
        dict: {'original': shrunk reservation (completed),
               'created': [new in-progress reservations]}

    Raises:
        NotFoundError, ForbiddenError, InvalidRequestError, ConflictError
    """
    now = now or get_now()
    groups = _normalize_groups(groups)

    try:
        with transaction() as db:
            reservation = _load_current(reservation_id, owner_id, now)
            room = get_room_by_id(reservation['room_id'])
            consumed, remaining = partition_slots(reservation, now)
            _validate_split(reservation, room, groups, consumed, remaining)

            placeholders = ','.join('?' * len(remaining))
            db.execute(f'''
                DELETE FROM reservation_slots
                WHERE reservation_id = ?
                  AND time_slot IN ({placeholders})
            ''', [reservation_id] + remaining)

            db.execute('''
                UPDATE reservations
                SET total_price = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', (calculate_total_price(room, reservation['type'], len(consumed)), reservation_id))
            record_status_change(db, reservation_id, reservation['status'], STATUS_COMPLETED,
                                 owner_id, f'Split into {len(groups)} reservations')

            created_ids = []
            offset = 0
            for group in groups:
                group_slots = remaining[offset:offset + group['slot_count']]
                offset += group['slot_count']
                created_ids.append(insert_reservation(
                    db,
                    room_id=reservation['room_id'],
                    user_id=reservation['user_id'],
                    reservation_date=reservation['reservation_date'],
                    reservation_type=group['type'],
                    total_price=calculate_total_price(room, group['type'], len(group_slots)),
                    status=STATUS_IN_PROGRESS,
                    time_slots=group_slots,
                    split_from_id=reservation_id,
                    created_by=owner_id,
                ))
    except sqlite3.IntegrityError as e:
        raise ConflictError('Reservation changed while splitting, please retry') from e

    logger.info('Reservation %s split by owner %s into %s', reservation_id, owner_id, created_ids)
    return {
        'original': fetch_reservation(reservation_id),
        'created': [fetch_reservation(new_id) for new_id in created_ids],
    }
