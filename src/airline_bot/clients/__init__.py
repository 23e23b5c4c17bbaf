"""
API clients for external services
"""

from .airline_api_client import AirlineAPIClient
from .maps_api_client import MapsAPIClient
from .assistant_client import AssistantClient

__all__ = [
    "AirlineAPIClient",
    "MapsAPIClient",
    "AssistantClient",
]
