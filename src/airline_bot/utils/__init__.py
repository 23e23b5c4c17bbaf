"""
Utility modules for airline bot
"""

from .logger import setup_logging
from .validators import (
    validate_airport_code,
    strip_carrier_prefix,
    extract_span,
    format_coordinates,
)

__all__ = [
    "setup_logging",
    "validate_airport_code",
    "strip_carrier_prefix",
    "extract_span",
    "format_coordinates",
]
