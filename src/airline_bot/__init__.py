"""
Airline Bot

A conversational front-end that forwards customer text to a managed dialog
service and enriches its replies with flight, airport and travel-time data
from the airline and maps APIs.
"""

__version__ = "1.0.0"
__author__ = "Airline Bot Team"
