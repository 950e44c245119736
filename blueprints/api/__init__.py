"""
Booking API package.
JSON endpoints split into modules by entity:
- reservations.py - Booking, reads, status changes and split
- disable_periods.py - Room disable period management
- rooms.py - Availability lookups
"""

from flask import Blueprint

# Create the API blueprint
api_bp = Blueprint('api', __name__)

# Import and register routes from submodules
from blueprints.api import reservations
from blueprints.api import disable_periods
from blueprints.api import rooms

# Register all route functions on the blueprint
reservations.register_routes(api_bp)
disable_periods.register_routes(api_bp)
rooms.register_routes(api_bp)
