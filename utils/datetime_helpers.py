"""Timezone-aware date/time helpers for the booking engine.

Instants handled by the engine are naive datetimes expressed in the venue
timezone, so a slot label on a date maps to exactly one wall-clock instant.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import current_app

from utils.errors import InvalidRequestError

DATETIME_STORAGE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_timezone() -> ZoneInfo:
    """Get the configured venue timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'UTC')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the venue timezone."""
    return get_now().date()


def get_now() -> datetime:
    """Get the current venue wall-clock time (naive)."""
    return datetime.now(get_timezone()).replace(tzinfo=None, microsecond=0)


def to_venue_time(value: datetime) -> datetime:
    """Convert an aware datetime to naive venue time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(get_timezone()).replace(tzinfo=None)


def parse_datetime(value, field_name: str = 'datetime') -> datetime:
    """
    Parse an ISO-8601 datetime into naive venue time.

    Args:
        value: datetime instance or ISO string ('2030-01-15T16:00', '2030-01-15 16:00:00+03:00')
        field_name: Name used in the error message

    Returns:
        datetime: Naive venue-local datetime

    Raises:
        InvalidRequestError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return to_venue_time(value)
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequestError(f'{field_name} is required')

    raw = value.strip()
    if raw.endswith('Z'):
        raw = raw[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidRequestError(f'{field_name} must be an ISO-8601 datetime, got {value!r}')
    return to_venue_time(parsed)


def parse_date(value, field_name: str = 'date') -> date:
    """Parse a YYYY-MM-DD date (date instances pass through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise InvalidRequestError(f'{field_name} must be a YYYY-MM-DD date, got {value!r}')


def format_datetime(value: datetime) -> str:
    """Serialize a venue datetime for storage; the format sorts lexicographically."""
    return value.strftime(DATETIME_STORAGE_FORMAT)


def load_datetime(value: str) -> datetime:
    """Read a datetime written by format_datetime."""
    return datetime.strptime(value, DATETIME_STORAGE_FORMAT)
