"""
Tests for input validation utilities.
"""

import pytest

from utils.errors import InvalidRequestError
from utils.validators import (
    get_json_body,
    require_fields,
    validate_positive_integer,
    validate_date_format,
    sanitize_input
)


class TestGetJsonBody:
    """Tests for request body extraction."""

    def test_json_object(self, app):
        with app.test_request_context(json={'a': 1}):
            from flask import request
            assert get_json_body(request) == {'a': 1}

    def test_json_list_is_rejected(self, app):
        with app.test_request_context(json=[1, 2]):
            from flask import request
            with pytest.raises(InvalidRequestError):
                get_json_body(request)

    def test_missing_body(self, app):
        with app.test_request_context(method='POST'):
            from flask import request
            with pytest.raises(InvalidRequestError):
                get_json_body(request)


class TestRequireFields:
    """Tests for required field checks."""

    def test_all_present(self):
        require_fields({'a': 1, 'b': 'x'}, 'a', 'b')

    def test_missing_and_empty(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            require_fields({'a': '', 'b': [], 'c': 0}, 'a', 'b', 'c', 'd')
        assert exc_info.value.details['missing'] == ['a', 'b', 'd']


class TestValidatePositiveInteger:
    """Tests for ID coercion."""

    def test_valid(self):
        assert validate_positive_integer(5, 'room_id') == 5
        assert validate_positive_integer('12', 'room_id') == 12

    def test_invalid(self):
        for value in (0, -1, 'abc', None, True, 1.5):
            with pytest.raises(InvalidRequestError):
                validate_positive_integer(value, 'room_id')


class TestValidateDateFormat:
    """Tests for date format validation."""

    def test_valid_format(self):
        """Test valid YYYY-MM-DD format."""
        assert validate_date_format('2030-01-15') is True
        assert validate_date_format('2030-12-31') is True

    def test_invalid_format(self):
        """Test invalid date formats."""
        assert validate_date_format('15/01/2030') is False
        assert validate_date_format('2030-13-01') is False
        assert validate_date_format('') is False
        assert validate_date_format(None) is False


class TestSanitizeInput:
    """Tests for input sanitization."""

    def test_strip_whitespace(self):
        """Test whitespace stripping."""
        assert sanitize_input('  test  ') == 'test'

    def test_max_length(self):
        """Test length limiting."""
        assert sanitize_input('abcdefghij', max_length=5) == 'abcde'

    def test_empty_input(self):
        """Test empty input handling."""
        assert sanitize_input('') == ''
        assert sanitize_input(None) == ''
