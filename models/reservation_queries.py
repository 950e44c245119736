"""
Reservation read queries.
Hydrated single-reservation reads and listings. These never change state;
status refresh on read lives in reservation_crud.
"""

from typing import Optional

from database import get_db
from utils.time_slots import sort_slots


_RESERVATION_SELECT = '''
    SELECT res.*,
           r.name AS room_name,
           r.shop_id,
           r.single_hourly_rate,
           r.multi_hourly_rate,
           r.other_hourly_rate,
           s.name AS shop_name,
           s.owner_id AS shop_owner_id,
           d.name AS device_name,
           d.category AS device_category,
           u.name AS user_name
    FROM reservations res
    JOIN rooms r ON res.room_id = r.id
    JOIN shops s ON r.shop_id = s.id
    JOIN devices d ON r.device_id = d.id
    JOIN users u ON res.user_id = u.id
'''


def get_reservation_slots(reservation_id: int) -> list:
    """Slot labels of a reservation in chronological order."""
    db = get_db()
    rows = db.execute(
        'SELECT time_slot FROM reservation_slots WHERE reservation_id = ?',
        (reservation_id,)
    ).fetchall()
    return sort_slots(row['time_slot'] for row in rows)


def _hydrate(row) -> dict:
    data = dict(row)
    reservation = {
        'id': data['id'],
        'room_id': data['room_id'],
        'user_id': data['user_id'],
        'reservation_date': data['reservation_date'],
        'type': data['type'],
        'total_price': data['total_price'],
        'status': data['status'],
        'split_from_id': data['split_from_id'],
        'created_at': data['created_at'],
        'updated_at': data['updated_at'],
        'slots': get_reservation_slots(data['id']),
        'room': {
            'id': data['room_id'],
            'name': data['room_name'],
            'shop_id': data['shop_id'],
            'single_hourly_rate': data['single_hourly_rate'],
            'multi_hourly_rate': data['multi_hourly_rate'],
            'other_hourly_rate': data['other_hourly_rate'],
            'device_name': data['device_name'],
            'device_category': data['device_category'],
        },
        'shop': {
            'id': data['shop_id'],
            'name': data['shop_name'],
            'owner_id': data['shop_owner_id'],
        },
        'user': {
            'id': data['user_id'],
            'name': data['user_name'],
        },
    }
    return reservation


def fetch_reservation(reservation_id: int) -> Optional[dict]:
    """
    Get a reservation with its slots, room, shop and user.

    Returns:
        dict or None: Reservation as stored (no status refresh)
    """
    db = get_db()
    row = db.execute(_RESERVATION_SELECT + ' WHERE res.id = ?', (reservation_id,)).fetchone()
    return _hydrate(row) if row else None


def _fetch_many(where: str, params: tuple) -> list:
    db = get_db()
    rows = db.execute(
        _RESERVATION_SELECT + f' WHERE {where} ORDER BY res.reservation_date DESC, res.id DESC',
        params
    ).fetchall()
    return [_hydrate(row) for row in rows]


def get_reservations_by_user(user_id: int) -> list:
    """All reservations of a customer, newest first."""
    return _fetch_many('res.user_id = ?', (user_id,))


def get_reservations_by_room(room_id: int, reservation_date: str = None) -> list:
    """Reservations of a room, optionally for one date."""
    if reservation_date:
        return _fetch_many('res.room_id = ? AND res.reservation_date = ?', (room_id, reservation_date))
    return _fetch_many('res.room_id = ?', (room_id,))


def get_reservations_by_owner(owner_id: int, shop_id: int = None) -> list:
    """Reservations across the owner's shops, optionally limited to one shop."""
    if shop_id is not None:
        return _fetch_many('s.owner_id = ? AND s.id = ?', (owner_id, shop_id))
    return _fetch_many('s.owner_id = ?', (owner_id,))


def get_reservation_ids_for_sweep(statuses: tuple, up_to_date: str) -> list:
    """IDs of reservations in `statuses` dated on or before `up_to_date`."""
    db = get_db()
    placeholders = ','.join('?' * len(statuses))
    rows = db.execute(f'''
        SELECT id FROM reservations
        WHERE status IN ({placeholders})
          AND reservation_date <= ?
        ORDER BY reservation_date, id
    ''', list(statuses) + [up_to_date]).fetchall()
    return [row['id'] for row in rows]
