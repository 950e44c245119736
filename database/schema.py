"""
Database schema definitions.
Table creation, indexes, and the integrity triggers backing the booking rules.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservation_status_history',
        'reservation_slots',
        'reservations',
        'room_disable_periods',
        'rooms',
        'shops',
        'devices',
        'users',
        'owners',
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Identity tables (owned by the identity service; mirrored for joins)
    db.execute('''
        CREATE TABLE owners (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 2. Venue master data
    db.execute('''
        CREATE TABLE devices (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            category TEXT NOT NULL CHECK(category IN ('gaming', 'broadcast')),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE shops (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id INTEGER NOT NULL REFERENCES owners(id),
            name TEXT NOT NULL,
            opening_time TEXT NOT NULL DEFAULT '09:00',
            closing_time TEXT NOT NULL DEFAULT '23:00',
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            CHECK(opening_time < closing_time)
        )
    ''')

    db.execute('''
        CREATE TABLE rooms (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            shop_id INTEGER NOT NULL REFERENCES shops(id) ON DELETE CASCADE,
            device_id INTEGER NOT NULL REFERENCES devices(id),
            name TEXT NOT NULL,
            capacity INTEGER NOT NULL DEFAULT 1,
            single_hourly_rate REAL,
            multi_hourly_rate REAL,
            other_hourly_rate REAL,
            is_available INTEGER NOT NULL DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 3. Reservations
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            room_id INTEGER NOT NULL REFERENCES rooms(id),
            user_id INTEGER NOT NULL REFERENCES users(id),
            reservation_date TEXT NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('single', 'multi', 'other')),
            total_price REAL NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'in_progress', 'no_show', 'completed', 'payment_success')),
            split_from_id INTEGER REFERENCES reservations(id),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # room_id and reservation_date are copied from the parent reservation so
    # the (room, date, slot) uniqueness can be enforced by the database.
    db.execute('''
        CREATE TABLE reservation_slots (
            reservation_id INTEGER NOT NULL REFERENCES reservations(id) ON DELETE CASCADE,
            room_id INTEGER NOT NULL REFERENCES rooms(id),
            reservation_date TEXT NOT NULL,
            time_slot TEXT NOT NULL,
            PRIMARY KEY (reservation_id, time_slot),
            UNIQUE (room_id, reservation_date, time_slot)
        )
    ''')

    db.execute('''
        CREATE TABLE reservation_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id) ON DELETE CASCADE,
            old_status TEXT,
            new_status TEXT NOT NULL,
            changed_by TEXT NOT NULL,
            notes TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 4. Room disable periods (datetimes stored as 'YYYY-MM-DD HH:MM:SS' venue time)
    db.execute('''
        CREATE TABLE room_disable_periods (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            room_id INTEGER NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
            owner_id INTEGER NOT NULL REFERENCES owners(id),
            start_datetime TEXT NOT NULL,
            end_datetime TEXT NOT NULL,
            reason TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            CHECK(end_datetime > start_datetime)
        )
    ''')


def create_indexes(db):
    """Create indexes for the hot lookup paths."""
    indexes = [
        'CREATE INDEX IF NOT EXISTS idx_shops_owner ON shops(owner_id)',
        'CREATE INDEX IF NOT EXISTS idx_rooms_shop ON rooms(shop_id)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_room_date ON reservations(room_id, reservation_date)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_user ON reservations(user_id)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_status_date ON reservations(status, reservation_date)',
        'CREATE INDEX IF NOT EXISTS idx_status_history_reservation ON reservation_status_history(reservation_id)',
        'CREATE INDEX IF NOT EXISTS idx_disable_periods_room ON room_disable_periods(room_id, start_datetime)',
        'CREATE INDEX IF NOT EXISTS idx_disable_periods_owner ON room_disable_periods(owner_id)',
    ]
    for statement in indexes:
        db.execute(statement)


def create_triggers(db):
    """Reject overlapping disable periods for the same room at the database level."""
    db.execute('''
        CREATE TRIGGER IF NOT EXISTS trg_disable_periods_no_overlap_insert
        BEFORE INSERT ON room_disable_periods
        WHEN EXISTS (
            SELECT 1 FROM room_disable_periods p
            WHERE p.room_id = NEW.room_id
              AND p.start_datetime < NEW.end_datetime
              AND p.end_datetime > NEW.start_datetime
        )
        BEGIN
            SELECT RAISE(ABORT, 'room_disable_periods overlap');
        END
    ''')

    db.execute('''
        CREATE TRIGGER IF NOT EXISTS trg_disable_periods_no_overlap_update
        BEFORE UPDATE OF room_id, start_datetime, end_datetime ON room_disable_periods
        WHEN EXISTS (
            SELECT 1 FROM room_disable_periods p
            WHERE p.room_id = NEW.room_id
              AND p.id != NEW.id
              AND p.start_datetime < NEW.end_datetime
              AND p.end_datetime > NEW.start_datetime
        )
        BEGIN
            SELECT RAISE(ABORT, 'room_disable_periods overlap');
        END
    ''')
