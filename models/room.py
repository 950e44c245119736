"""
Room model.
Read access to rooms joined with their shop and device.
"""

from typing import Optional

from database import get_db


RATE_COLUMNS = {
    'single': 'single_hourly_rate',
    'multi': 'multi_hourly_rate',
    'other': 'other_hourly_rate',
}


def get_room_by_id(room_id: int) -> Optional[dict]:
    """
    Get a room with the shop and device attributes the booking rules need.

    Args:
        room_id: Room ID

    Returns:
        dict or None: Room row plus shop_owner_id, opening_time, closing_time,
        device_name and device_category
    """
    db = get_db()
    cursor = db.execute('''
        SELECT r.*,
               s.owner_id AS shop_owner_id,
               s.name AS shop_name,
               s.opening_time,
               s.closing_time,
               d.name AS device_name,
               d.category AS device_category
        FROM rooms r
        JOIN shops s ON r.shop_id = s.id
        JOIN devices d ON r.device_id = d.id
        WHERE r.id = ?
    ''', (room_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_room_rate(room: dict, reservation_type: str) -> Optional[float]:
    """Hourly rate configured on the room for a reservation type (None if unset)."""
    column = RATE_COLUMNS.get(reservation_type)
    if column is None:
        return None
    return room.get(column)
