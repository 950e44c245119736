"""
Reservation data access functions.
Booking, status lifecycle, availability and split operations.

This module re-exports the functions of the split modules so callers can
import everything reservation-related from one place:
- reservation_availability.py: Booking rules and slot conflict detection
- reservation_crud.py: Booking and status-refreshing reads
- reservation_queries.py: Hydrated reads and listings
- reservation_state.py: Status state machine and history
- reservation_split.py: Splitting in-progress reservations
"""

# =============================================================================
# RE-EXPORTS
# =============================================================================

# Availability
from .reservation_availability import (
    RESERVATION_TYPES,
    validate_booking_request,
    find_conflicting_slots,
    get_available_slots,
)

# CRUD operations
from .reservation_crud import (
    book_reservation,
    get_reservation_by_id,
    get_reservation_for_viewer,
    refresh_statuses,
)

# Query operations
from .reservation_queries import (
    fetch_reservation,
    get_reservations_by_user,
    get_reservations_by_room,
    get_reservations_by_owner,
)

# State management
from .reservation_state import (
    RESERVATION_STATUSES,
    STATUS_PENDING,
    STATUS_IN_PROGRESS,
    STATUS_NO_SHOW,
    STATUS_COMPLETED,
    STATUS_PAYMENT_SUCCESS,
    can_transition,
    compute_time_based_status,
    update_reservation_status_based_on_time,
    sweep_reservation_statuses,
    set_reservation_status,
    get_valid_transitions,
    get_status_history,
)

# Split
from .reservation_split import (
    partition_slots,
    get_remaining_slots,
    split_reservation,
)

# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # Availability
    'RESERVATION_TYPES',
    'validate_booking_request',
    'find_conflicting_slots',
    'get_available_slots',

    # CRUD
    'book_reservation',
    'get_reservation_by_id',
    'get_reservation_for_viewer',
    'refresh_statuses',

    # Queries
    'fetch_reservation',
    'get_reservations_by_user',
    'get_reservations_by_room',
    'get_reservations_by_owner',

    # State management
    'RESERVATION_STATUSES',
    'STATUS_PENDING',
    'STATUS_IN_PROGRESS',
    'STATUS_NO_SHOW',
    'STATUS_COMPLETED',
    'STATUS_PAYMENT_SUCCESS',
    'can_transition',
    'compute_time_based_status',
    'update_reservation_status_based_on_time',
    'sweep_reservation_statuses',
    'set_reservation_status',
    'get_valid_transitions',
    'get_status_history',

    # Split
    'partition_slots',
    'get_remaining_slots',
    'split_reservation',
]
