"""
User and owner lookups.

Accounts are managed by the identity service; the booking engine only needs
to know that a referenced user or owner exists.
"""

from typing import Optional

from database import get_db


def get_user_by_id(user_id: int) -> Optional[dict]:
    """Get a customer account by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def get_owner_by_id(owner_id: int) -> Optional[dict]:
    """Get a shop owner account by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM owners WHERE id = ?', (owner_id,)).fetchone()
    return dict(row) if row else None
