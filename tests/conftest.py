"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import os
import pytest
import tempfile
from datetime import date, datetime

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'roombook_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH

# Fixed booking day far enough ahead that the real clock never reaches it
BOOKING_DAY = date(2030, 1, 15)


def at(hour: int, minute: int = 0, day: date = BOOKING_DAY) -> datetime:
    """Venue wall-clock instant on the booking day."""
    return datetime(day.year, day.month, day.day, hour, minute)


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for suffix in ('', '-wal', '-shm'):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def app():
    """Create test application with isolated database."""
    from app import create_app
    from database import init_db

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['DATABASE_PATH'] = TEST_DB_PATH

    with app.app_context():
        init_db()
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    from flask import g

    @app.before_request
    def forget_previous_caller():
        # Requests reuse the fixture's app context, where Flask-Login caches the caller
        g.pop('_login_user', None)

    return app.test_client()


@pytest.fixture
def venue(app):
    """
    Seed a shop with one gaming and one broadcast room.

    Shop hours 09:00-22:00. The PS5 room charges 10/h single and 20/h multi
    with no 'other' rate; the beIN room charges 30/h for 'other' only.
    """
    from database import get_db

    db = get_db()
    cursor = db.cursor()

    cursor.execute("INSERT INTO owners (name, email) VALUES ('Owner One', 'owner1@example.com')")
    owner_id = cursor.lastrowid
    cursor.execute("INSERT INTO owners (name, email) VALUES ('Owner Two', 'owner2@example.com')")
    other_owner_id = cursor.lastrowid

    cursor.execute("INSERT INTO users (name, email) VALUES ('Player One', 'player1@example.com')")
    user_id = cursor.lastrowid
    cursor.execute("INSERT INTO users (name, email) VALUES ('Player Two', 'player2@example.com')")
    other_user_id = cursor.lastrowid

    cursor.execute('''
        INSERT INTO shops (owner_id, name, opening_time, closing_time)
        VALUES (?, 'Arena', '09:00', '22:00')
    ''', (owner_id,))
    shop_id = cursor.lastrowid

    ps5 = db.execute("SELECT id FROM devices WHERE name = 'PS5'").fetchone()['id']
    bein = db.execute("SELECT id FROM devices WHERE name = 'beIN Sports'").fetchone()['id']

    cursor.execute('''
        INSERT INTO rooms (shop_id, device_id, name, single_hourly_rate, multi_hourly_rate)
        VALUES (?, ?, 'PS5 Room 1', 10, 20)
    ''', (shop_id, ps5))
    gaming_room_id = cursor.lastrowid

    cursor.execute('''
        INSERT INTO rooms (shop_id, device_id, name, other_hourly_rate)
        VALUES (?, ?, 'Match Room', 30)
    ''', (shop_id, bein))
    broadcast_room_id = cursor.lastrowid

    db.commit()

    return {
        'owner_id': owner_id,
        'other_owner_id': other_owner_id,
        'user_id': user_id,
        'other_user_id': other_user_id,
        'shop_id': shop_id,
        'gaming_room_id': gaming_room_id,
        'broadcast_room_id': broadcast_room_id,
    }


@pytest.fixture
def book(venue):
    """Book slots on the gaming room as the first user, with the clock at 08:00 on the booking day."""
    from models.reservation import book_reservation

    def _book(slots, reservation_type='single', room_id=None, day=BOOKING_DAY, now=None):
        return book_reservation(
            room_id or venue['gaming_room_id'], day, reservation_type, slots,
            user_id=venue['user_id'], now=now or at(8),
        )

    return _book


def owner_headers(owner_id: int) -> dict:
    return {'X-Owner-Id': str(owner_id)}


def user_headers(user_id: int) -> dict:
    return {'X-User-Id': str(user_id)}
