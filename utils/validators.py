"""
Input validation helper functions.
Validates request bodies and query parameters before they reach the models.
"""

from datetime import datetime

from utils.errors import InvalidRequestError


def get_json_body(request) -> dict:
    """
    Get the JSON object sent with a request.

    Raises:
        InvalidRequestError: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequestError('Request body must be a JSON object')
    return data


def require_fields(data: dict, *fields: str):
    """
    Check that every named field is present and not empty.

    Raises:
        InvalidRequestError: Listing the missing fields
    """
    missing = [field for field in fields if data.get(field) in (None, '', [])]
    if missing:
        raise InvalidRequestError(f'Missing required fields: {", ".join(missing)}',
                                  missing=missing)


def validate_positive_integer(value, field_name: str) -> int:
    """
    Coerce a positive integer ID from JSON or a query string.

    Raises:
        InvalidRequestError: If the value is not a positive integer
    """
    if isinstance(value, bool):
        raise InvalidRequestError(f'{field_name} must be a positive integer')
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 1:
        raise InvalidRequestError(f'{field_name} must be a positive integer')
    return value


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    if not isinstance(date_str, str):
        return False
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except ValueError:
        return False


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip whitespace
    sanitized = text.strip()

    # Limit length if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
