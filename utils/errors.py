"""
Booking error taxonomy.

Every rule violated by the booking engine surfaces as one of these
exceptions. The HTTP layer renders them with `status_code`.
"""


class BookingError(Exception):
    """Base class for booking engine errors."""

    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(BookingError):
    """Missing room, shop, user, owner, reservation or disable period."""

    status_code = 404


class InvalidRequestError(BookingError, ValueError):
    """Malformed or out-of-policy input."""

    status_code = 400


class ConflictError(BookingError):
    """Slot already booked, overlapping disable period or illegal transition."""

    status_code = 409


class ForbiddenError(BookingError):
    """Caller does not own the resource."""

    status_code = 403
