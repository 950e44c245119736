"""
Shop model.
Shop lookups and the ownership capability used to authorize owner actions.
"""

from typing import Optional

from database import get_db


def get_shop_by_id(shop_id: int) -> Optional[dict]:
    """Get a shop (opening_time, closing_time, owner_id) by ID."""
    db = get_db()
    row = db.execute('SELECT * FROM shops WHERE id = ?', (shop_id,)).fetchone()
    return dict(row) if row else None


def caller_owns_shop(shop_id: int, owner_id: int) -> bool:
    """True if `owner_id` owns the shop."""
    if owner_id is None:
        return False
    shop = get_shop_by_id(shop_id)
    return shop is not None and shop['owner_id'] == owner_id
