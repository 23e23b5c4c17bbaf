"""
Services module initialization
"""

from .audit_logger import AuditLogger, audit_logger
from .reference_data import ReferenceData, ReferenceDataLoader, ReferenceDataStatus
from .response_dispatcher import ResponseDispatcher, format_flight_status
from .conversation import ConversationSession

__all__ = [
    'AuditLogger',
    'audit_logger',
    'ReferenceData',
    'ReferenceDataLoader',
    'ReferenceDataStatus',
    'ResponseDispatcher',
    'format_flight_status',
    'ConversationSession',
]
