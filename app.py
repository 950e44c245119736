"""
RoomBook - Gaming Venue Room Booking Engine
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager

# Import database functions
from database import close_db, init_db

from utils.api_response import api_error
from utils.errors import BookingError


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])
    app.json.sort_keys = app.config.get('JSON_SORT_KEYS', False)

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    from blueprints.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')

    @app.route('/health')
    def health_check():
        """Health check endpoint (no authentication required)."""
        return jsonify({
            'status': 'ok',
            'version': app.config.get('APP_VERSION', '1.0.0'),
            'app': app.config.get('APP_NAME', 'RoomBook'),
        })


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(BookingError)
    def booking_error(error):
        """Render booking engine errors with their own status code."""
        return api_error(error.message, status=error.status_code, **error.details)

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error('Resource not found', status=404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error('Method not allowed', status=405)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.error('Unhandled error: %s', getattr(error, 'original_exception', error))
        return api_error('Internal server error', status=500)

    @app.errorhandler(HTTPException)
    def http_error(error):
        """Render remaining HTTP errors as JSON."""
        return api_error(error.description or error.name, status=error.code)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('sweep-statuses')
    def sweep_statuses_command():
        """Advance pending/in-progress reservations from the clock."""
        from models.reservation_state import sweep_reservation_statuses

        with app.app_context():
            changed = sweep_reservation_statuses()
        click.echo(f'{changed} reservation(s) updated')

    @app.cli.command('cleanup-disable-periods')
    def cleanup_disable_periods_command():
        """Delete disable periods that have already ended."""
        from models.disable_period import cleanup_expired_periods

        with app.app_context():
            deleted = cleanup_expired_periods()
        click.echo(f'{deleted} expired disable period(s) deleted')

    @app.cli.command('expiring-disable-periods')
    @click.option('--hours', type=int, default=None,
                  help='Look-ahead window (defaults to DISABLE_PERIOD_EXPIRY_WARNING_HOURS).')
    def expiring_disable_periods_command(hours):
        """List disable periods that end within the warning window."""
        from models.disable_period import get_expiring_periods

        with app.app_context():
            window = hours or app.config['DISABLE_PERIOD_EXPIRY_WARNING_HOURS']
            periods = get_expiring_periods(window)
        for period in periods:
            click.echo(f"#{period['id']} room {period['room_id']} ends {period['end_datetime']}")
        click.echo(f'{len(periods)} period(s) ending within {window}h')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/roombook.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger('models').addHandler(file_handler)
        logging.getLogger('models').setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('RoomBook startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', debug=True)
