"""
Reservation API routes.
Booking for customers; status management and split for shop owners.
"""

from flask import request
from flask_login import login_required, current_user

from models.reservation import (
    book_reservation,
    get_reservation_for_viewer,
    get_reservations_by_user,
    get_reservations_by_owner,
    refresh_statuses,
    set_reservation_status,
    get_valid_transitions,
    get_remaining_slots,
    split_reservation,
    get_status_history,
)
from utils.api_response import api_success
from utils.decorators import owner_required, user_required
from utils.validators import get_json_body, require_fields, validate_positive_integer


def register_routes(bp):
    """Register reservation routes on the blueprint."""

    @bp.route('/reservations', methods=['POST'])
    @user_required
    def create_reservation():
        """
        Book time slots on a room.

        Request body:
            room_id: Room ID
            reservation_date: YYYY-MM-DD
            type: single, multi or other
            time_slots: List of HH:MM labels

        Returns:
            201 with the created reservation
        """
        data = get_json_body(request)
        require_fields(data, 'room_id', 'reservation_date', 'type', 'time_slots')

        reservation = book_reservation(
            room_id=validate_positive_integer(data['room_id'], 'room_id'),
            reservation_date=data['reservation_date'],
            reservation_type=data['type'],
            time_slots=data['time_slots'],
            user_id=current_user.account_id,
        )
        return api_success(data=reservation, message='Reservation created', status=201)

    @bp.route('/reservations/mine', methods=['GET'])
    @user_required
    def my_reservations():
        """Reservations of the calling customer, newest first."""
        reservations = refresh_statuses(get_reservations_by_user(current_user.account_id))
        return api_success(data=reservations, count=len(reservations))

    @bp.route('/owner/reservations', methods=['GET'])
    @owner_required
    def owner_reservations():
        """
        Reservations across the calling owner's shops.

        Query params:
            shop_id: Limit to one shop (optional)
        """
        shop_id = request.args.get('shop_id', type=int)
        reservations = refresh_statuses(get_reservations_by_owner(current_user.account_id, shop_id))
        return api_success(data=reservations, count=len(reservations))

    @bp.route('/reservations/<int:reservation_id>', methods=['GET'])
    @login_required
    def reservation_detail(reservation_id):
        """Reservation details for its customer or the owner of its shop."""
        reservation = get_reservation_for_viewer(
            reservation_id,
            user_id=current_user.account_id if current_user.is_customer else None,
            owner_id=current_user.account_id if current_user.is_owner else None,
        )
        return api_success(data=reservation)

    @bp.route('/reservations/<int:reservation_id>/history', methods=['GET'])
    @login_required
    def reservation_history(reservation_id):
        """Status change history of a reservation."""
        get_reservation_for_viewer(
            reservation_id,
            user_id=current_user.account_id if current_user.is_customer else None,
            owner_id=current_user.account_id if current_user.is_owner else None,
        )
        return api_success(data=get_status_history(reservation_id))

    @bp.route('/reservations/<int:reservation_id>/status', methods=['PATCH'])
    @owner_required
    def change_status(reservation_id):
        """
        Change the status of a reservation.

        Request body:
            status: Target status
        """
        data = get_json_body(request)
        require_fields(data, 'status')

        reservation = set_reservation_status(reservation_id, data['status'], current_user.account_id)
        return api_success(data=reservation, message=f"Status changed to {data['status']}")

    @bp.route('/reservations/<int:reservation_id>/valid-transitions', methods=['GET'])
    @owner_required
    def valid_transitions(reservation_id):
        """Statuses the reservation can currently be moved to."""
        transitions = get_valid_transitions(reservation_id, current_user.account_id)
        return api_success(data={'reservation_id': reservation_id, 'valid_transitions': transitions})

    @bp.route('/reservations/<int:reservation_id>/remaining-slots', methods=['GET'])
    @owner_required
    def remaining_slots(reservation_id):
        """Consumed and remaining slots of a reservation, and whether it can be split."""
        return api_success(data=get_remaining_slots(reservation_id, current_user.account_id))

    @bp.route('/reservations/<int:reservation_id>/split', methods=['POST'])
    @owner_required
    def split(reservation_id):
        """
        Split the remaining slots of an in-progress reservation.

        Request body:
            new_reservations: [{"slot_count": int, "type": str}, ...]

        Returns:
            201 with the shrunk original and the created reservations
        """
        data = get_json_body(request)
        require_fields(data, 'new_reservations')

        result = split_reservation(reservation_id, current_user.account_id,
                                   data['new_reservations'])
        return api_success(data=result,
                           message=f"Reservation split into {len(result['created'])} reservations",
                           status=201)
