"""
Database connection management.
Handles per-context connections, the unit-of-work boundary, initialization and teardown.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager

from flask import g, current_app

logger = logging.getLogger(__name__)


def get_db():
    """
    Get the database connection bound to the current app context.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/room_booking.db')
        directory = os.path.dirname(db_path)
        if directory and db_path != ':memory:' and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
        g.db = sqlite3.connect(db_path)
        g.db.row_factory = sqlite3.Row
        # Enable foreign key constraints
        g.db.execute('PRAGMA foreign_keys = ON')
        # Enable WAL mode for better concurrency
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


@contextmanager
def transaction():
    """
    Unit of work: everything inside runs in one write transaction.

    BEGIN IMMEDIATE takes the write lock up front, so the checks performed
    inside the block cannot be invalidated by a concurrent writer before the
    inserts land. Nested use joins the outer transaction.

    Usage:
        with transaction() as db:
            db.execute(...)
    """
    db = get_db()
    if g.get('in_transaction'):
        yield db
        return

    db.execute('BEGIN IMMEDIATE')
    g.in_transaction = True
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
    finally:
        g.in_transaction = False


def init_db():
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes, create_triggers
    from database.seed import seed_database

    db = get_db()

    drop_tables(db)
    create_tables(db)
    create_indexes(db)
    create_triggers(db)
    seed_database(db)

    db.commit()
    logger.info('Database initialized at %s', current_app.config.get('DATABASE_PATH'))
