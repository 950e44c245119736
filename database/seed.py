"""
Database seed data.
Initial data population for fresh database installations.
"""

DEVICE_SEED = [
    ('PS5', 'gaming'),
    ('PS4', 'gaming'),
    ('PS3', 'gaming'),
    ('Xbox One', 'gaming'),
    ('beIN Sports', 'broadcast'),
]


def seed_database(db):
    """Insert initial seed data."""

    # Device catalogue. The category decides which reservation types a room accepts.
    for name, category in DEVICE_SEED:
        db.execute('''
            INSERT OR IGNORE INTO devices (name, category)
            VALUES (?, ?)
        ''', (name, category))
