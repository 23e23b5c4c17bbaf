"""
Tests for validation utilities
"""

import pytest
from airline_bot.utils.validators import (
    validate_airport_code,
    strip_carrier_prefix,
    extract_span,
    format_coordinates
)


class TestAirportCodeValidation:
    """Test airport code validation"""

    def test_valid_airport_code(self):
        """Test valid airport codes"""
        assert validate_airport_code("DUB")
        assert validate_airport_code("STN")
        assert validate_airport_code("dub")  # Should work with lowercase

    def test_invalid_airport_code(self):
        """Test invalid airport codes"""
        assert not validate_airport_code("")
        assert not validate_airport_code("DU")  # Too short
        assert not validate_airport_code("DUBL")  # Too long
        assert not validate_airport_code("DU1")  # Contains number
        assert not validate_airport_code(None)


class TestTextHelpers:
    """Test text extraction helpers"""

    def test_strip_carrier_prefix(self):
        assert strip_carrier_prefix("RYR1234") == "1234"
        assert strip_carrier_prefix("1234") == "1234"
        # Only the first occurrence is removed
        assert strip_carrier_prefix("RYRRYR1") == "RYR1"

    def test_extract_span(self):
        text = "What about RYR1234?"
        assert extract_span(text, [11, 18]) == "RYR1234"
        assert extract_span(text, [14, 18]) == "1234"

    @pytest.mark.parametrize("location", [None, [], [5], [10, 5], [0, 100], [-1, 3]])
    def test_extract_span_invalid(self, location):
        assert extract_span("What about RYR1234?", location) is None

    def test_extract_span_no_text(self):
        assert extract_span(None, [0, 3]) is None

    def test_format_coordinates(self):
        assert format_coordinates(53.4213, -6.27007) == "53.4213,-6.27007"
