"""
Validation and text helpers for identifiers found in customer messages
"""

import re
from typing import Optional, Sequence

CARRIER_PREFIX = "RYR"


def validate_airport_code(code: str) -> bool:
    """
    Validate airport code format (IATA 3-letter codes)
    """
    if not code:
        return False

    # Remove whitespace and convert to uppercase
    code = code.strip().upper()

    # Check if it's exactly 3 letters
    pattern = r'^[A-Z]{3}$'
    return bool(re.match(pattern, code))


def strip_carrier_prefix(text: str) -> str:
    """
    Remove the first literal RYR carrier code from a flight designator
    """
    return text.replace(CARRIER_PREFIX, "", 1)


def extract_span(text: str, location: Optional[Sequence[int]]) -> Optional[str]:
    """
    Extract the substring of text covered by a [start, end) character span
    """
    if not text or not location or len(location) < 2:
        return None

    start, end = location[0], location[1]
    if start < 0 or end > len(text) or start >= end:
        return None

    return text[start:end]


def format_coordinates(latitude: float, longitude: float) -> str:
    """
    Render a coordinate pair as the "lat,lng" string used by the maps API
    """
    return f"{latitude},{longitude}"
