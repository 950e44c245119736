"""
Database tests.
Tests database initialization, constraints and the unit of work.
"""

import sqlite3

import pytest

from database import get_db, transaction


def test_database_tables(app):
    """Test that all required tables exist."""
    db = get_db()
    cursor = db.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
    tables = [row[0] for row in cursor.fetchall()]

    required_tables = [
        'owners', 'users', 'devices', 'shops', 'rooms',
        'reservations', 'reservation_slots', 'reservation_status_history',
        'room_disable_periods',
    ]

    for table in required_tables:
        assert table in tables, f"Table {table} should exist"


def test_overlap_triggers_exist(app):
    db = get_db()
    triggers = {row[0] for row in db.execute("SELECT name FROM sqlite_master WHERE type='trigger'")}
    assert 'trg_disable_periods_no_overlap_insert' in triggers
    assert 'trg_disable_periods_no_overlap_update' in triggers


def test_seed_data(app):
    """Test that the device catalogue was seeded."""
    db = get_db()
    names = {row['name'] for row in db.execute('SELECT name FROM devices')}
    assert {'PS5', 'PS4', 'PS3', 'Xbox One', 'beIN Sports'} <= names


def test_foreign_keys_enabled(app):
    db = get_db()
    assert db.execute('PRAGMA foreign_keys').fetchone()[0] == 1


def test_reservation_status_check(app, venue):
    db = get_db()
    with pytest.raises(sqlite3.IntegrityError):
        db.execute('''
            INSERT INTO reservations (room_id, user_id, reservation_date, type, status)
            VALUES (?, ?, '2030-01-15', 'single', 'cancelled')
        ''', (venue['gaming_room_id'], venue['user_id']))
    db.rollback()


class TestTransaction:
    """Tests for the transaction() unit of work."""

    def test_commit(self, app, venue):
        with transaction() as db:
            db.execute("INSERT INTO users (name, email) VALUES ('Tx', 'tx@example.com')")

        row = get_db().execute("SELECT name FROM users WHERE email = 'tx@example.com'").fetchone()
        assert row['name'] == 'Tx'

    def test_rollback_on_error(self, app, venue):
        with pytest.raises(RuntimeError):
            with transaction() as db:
                db.execute("INSERT INTO users (name, email) VALUES ('Tx', 'tx@example.com')")
                raise RuntimeError('boom')

        row = get_db().execute("SELECT 1 FROM users WHERE email = 'tx@example.com'").fetchone()
        assert row is None

    def test_nested_joins_outer(self, app, venue):
        """An inner block does not commit on its own."""
        with pytest.raises(RuntimeError):
            with transaction() as db:
                with transaction() as inner:
                    inner.execute("INSERT INTO users (name, email) VALUES ('In', 'in@example.com')")
                raise RuntimeError('outer fails')

        row = get_db().execute("SELECT 1 FROM users WHERE email = 'in@example.com'").fetchone()
        assert row is None
