"""
Reservation pricing.
Each slot is 30 minutes, so a reservation costs rate * slots * 0.5.
"""

from models.room import get_room_rate
from utils.errors import InvalidRequestError
from utils.time_slots import SLOT_MINUTES

SLOT_HOURS = SLOT_MINUTES / 60


def get_hourly_rate(room: dict, reservation_type: str) -> float:
    """
    Hourly rate for a reservation type.

    Raises:
        InvalidRequestError: If the room has no positive rate for the type
    """
    rate = get_room_rate(room, reservation_type)
    if rate is None or rate <= 0:
        raise InvalidRequestError(
            f'Rate not configured for {reservation_type} reservations on this room',
            room_id=room.get('id'),
            type=reservation_type,
        )
    return rate


def calculate_total_price(room: dict, reservation_type: str, slot_count: int) -> float:
    """
    Total price of `slot_count` slots booked as `reservation_type`.

    Args:
        room: Room dict carrying the *_hourly_rate columns
        reservation_type: single, multi or other
        slot_count: Number of 30-minute slots

    Returns:
        float: rate(type) * slot_count * 0.5
    """
    return get_hourly_rate(room, reservation_type) * slot_count * SLOT_HOURS
