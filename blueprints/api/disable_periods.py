"""
Room disable period API routes.
Owners block rooms for maintenance or private use.
"""

from flask import request
from flask_login import login_required, current_user

from models.disable_period import (
    create_disable_period,
    update_disable_period,
    delete_disable_period,
    get_disable_periods_for_room,
    get_disable_periods_for_owner,
    is_room_disabled_at,
)
from models.room import get_room_by_id
from utils.api_response import api_success
from utils.datetime_helpers import get_now, parse_datetime
from utils.decorators import owner_required
from utils.errors import NotFoundError
from utils.validators import get_json_body, require_fields, sanitize_input


def register_routes(bp):
    """Register disable period routes on the blueprint."""

    @bp.route('/rooms/<int:room_id>/disable-periods', methods=['POST'])
    @owner_required
    def create_period(room_id):
        """
        Disable a room for an interval.

        Request body:
            start_datetime: ISO-8601 datetime
            end_datetime: ISO-8601 datetime (exclusive)
            reason: Optional text
        """
        data = get_json_body(request)
        require_fields(data, 'start_datetime', 'end_datetime')

        period = create_disable_period(
            room_id, current_user.account_id,
            data['start_datetime'], data['end_datetime'],
            reason=sanitize_input(data.get('reason'), max_length=500) or None,
        )
        return api_success(data=period, message='Room disabled', status=201)

    @bp.route('/rooms/<int:room_id>/disable-periods', methods=['GET'])
    @login_required
    def list_room_periods(room_id):
        """Current and upcoming disable periods of a room."""
        periods = get_disable_periods_for_room(room_id)
        return api_success(data=periods, count=len(periods))

    @bp.route('/owner/disable-periods', methods=['GET'])
    @owner_required
    def list_owner_periods():
        """All disable periods declared by the calling owner."""
        periods = get_disable_periods_for_owner(current_user.account_id)
        return api_success(data=periods, count=len(periods))

    @bp.route('/disable-periods/<int:period_id>', methods=['PUT'])
    @owner_required
    def update_period(period_id):
        """Replace the interval and reason of a disable period."""
        data = get_json_body(request)
        require_fields(data, 'start_datetime', 'end_datetime')

        period = update_disable_period(
            period_id, current_user.account_id,
            data['start_datetime'], data['end_datetime'],
            reason=sanitize_input(data.get('reason'), max_length=500) or None,
        )
        return api_success(data=period, message='Disable period updated')

    @bp.route('/disable-periods/<int:period_id>', methods=['DELETE'])
    @owner_required
    def delete_period(period_id):
        """Remove a disable period."""
        delete_disable_period(period_id, current_user.account_id)
        return api_success(message='Disable period deleted')

    @bp.route('/rooms/<int:room_id>/disabled', methods=['GET'])
    @login_required
    def room_disabled(room_id):
        """
        Whether a room is disabled at an instant.

        Query params:
            at: ISO-8601 datetime (defaults to now)
        """
        if get_room_by_id(room_id) is None:
            raise NotFoundError('Room not found', room_id=room_id)

        raw = request.args.get('at')
        instant = parse_datetime(raw, 'at') if raw else get_now()
        return api_success(data={
            'room_id': room_id,
            'at': instant,
            'disabled': is_room_disabled_at(room_id, instant),
        })
