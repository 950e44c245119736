"""
Route decorators for authentication and authorization.
Restricts routes to shop owners or customers.
"""

from functools import wraps

from flask_login import login_required, current_user

from utils.api_response import api_error


def owner_required(func):
    """
    Decorator restricting a route to authenticated shop owners.

    Usage:
        @bp.route('/reservations/<int:reservation_id>/split', methods=['POST'])
        @owner_required
        def split(reservation_id):
            ...
    """
    @wraps(func)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_owner:
            return api_error('This action is restricted to shop owners', status=403)
        return func(*args, **kwargs)
    return wrapper


def user_required(func):
    """Decorator restricting a route to authenticated customers."""
    @wraps(func)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_customer:
            return api_error('This action is restricted to customers', status=403)
        return func(*args, **kwargs)
    return wrapper


# Re-export login_required for convenience
__all__ = ['login_required', 'owner_required', 'user_required']
