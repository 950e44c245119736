"""
Device model.
The device-category to reservation-type policy.
"""

# =============================================================================
# CATEGORIES
# =============================================================================

DEVICE_CATEGORY_GAMING = 'gaming'
DEVICE_CATEGORY_BROADCAST = 'broadcast'

# Reservation types each device category accepts
CATEGORY_RESERVATION_TYPES = {
    DEVICE_CATEGORY_GAMING: ('single', 'multi'),
    DEVICE_CATEGORY_BROADCAST: ('other',),
}


def allowed_reservation_types(category: str) -> tuple:
    """Reservation types a room with this device category can be booked as."""
    return CATEGORY_RESERVATION_TYPES.get(category, ())


def is_type_compatible(category: str, reservation_type: str) -> bool:
    """True if a room whose device has `category` may be booked as `reservation_type`."""
    return reservation_type in allowed_reservation_types(category)

