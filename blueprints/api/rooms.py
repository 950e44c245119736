"""
Room API routes.
Availability lookups for the booking screen.
"""

from flask import request
from flask_login import login_required, current_user

from models.reservation import get_available_slots, get_reservations_by_room, refresh_statuses
from models.room import get_room_by_id
from utils.api_response import api_success
from utils.datetime_helpers import get_today
from utils.decorators import owner_required
from utils.errors import ForbiddenError, InvalidRequestError, NotFoundError
from utils.validators import validate_date_format


def _requested_date() -> str:
    requested = request.args.get('date') or get_today().isoformat()
    if not validate_date_format(requested):
        raise InvalidRequestError('date must be a YYYY-MM-DD date', date=requested)
    return requested


def register_routes(bp):
    """Register room routes on the blueprint."""

    @bp.route('/rooms/<int:room_id>/available-slots', methods=['GET'])
    @login_required
    def available_slots(room_id):
        """
        Slots of a day that can still be booked on a room.

        Query params:
            date: YYYY-MM-DD (defaults to today)
        """
        requested = _requested_date()
        slots = get_available_slots(room_id, requested)
        return api_success(data={'room_id': room_id, 'date': requested, 'available_slots': slots},
                           count=len(slots))

    @bp.route('/rooms/<int:room_id>/reservations', methods=['GET'])
    @owner_required
    def room_reservations(room_id):
        """
        Reservations of a room on a day (owner of the shop only).

        Query params:
            date: YYYY-MM-DD (defaults to today)
        """
        room = get_room_by_id(room_id)
        if room is None:
            raise NotFoundError('Room not found', room_id=room_id)
        if room['shop_owner_id'] != current_user.account_id:
            raise ForbiddenError('You can only view rooms of your own shops')

        reservations = refresh_statuses(get_reservations_by_room(room_id, _requested_date()))
        return api_success(data=reservations, count=len(reservations))
