"""
Audit logging service for the airline bot.

Records every conversation turn: the incoming message, what the dialog
service understood, and how the dispatcher completed the reply. Message text
and location coordinates are masked before they are logged.
"""

import re
import structlog
from typing import Any, Dict, Optional
from enum import Enum

from ..types import DispatchResult, NLUResponse
from ..config import config


class AuditEventType(str, Enum):
    """Types of audit events"""
    MESSAGE_RECEIVED = "message_received"
    DIALOG_RESPONSE = "dialog_response"
    DISPATCH_RESULT = "dispatch_result"
    ERROR_OCCURRED = "error_occurred"


class AuditLogger:
    """
    Service for audit logging with PII protection and structured logging.
    """

    def __init__(self):
        """Initialize the audit logger."""
        self.logger = structlog.get_logger("audit")
        self.enabled = config.logging.enable_audit

        # Context fields that should be masked
        self.pii_fields = {'current_location'}

    def log_message_received(
        self,
        session_id: str,
        text: Optional[str],
        context: Dict[str, Any],
        request_id: Optional[str] = None
    ) -> None:
        """
        Log an incoming chat message.

        Args:
            session_id: Conversation identifier
            text: Message text
            context: Context sent by the client
            request_id: Optional request identifier
        """
        if not self.enabled:
            return

        sanitized = self._sanitize_text(text or "")
        self.logger.info(
            "Message received",
            event_type=AuditEventType.MESSAGE_RECEIVED,
            session_id=session_id,
            request_id=request_id,
            text_length=len(text or ""),
            text_preview=sanitized[:100] + "..." if len(sanitized) > 100 else sanitized,
            context=self._sanitize_context(context)
        )

    def log_dialog_response(self, session_id: str, response: NLUResponse) -> None:
        """Log what the dialog service understood"""
        if not self.enabled:
            return

        top_intent = max(response.intents, key=lambda i: i.confidence, default=None)
        self.logger.info(
            "Dialog response",
            event_type=AuditEventType.DIALOG_RESPONSE,
            session_id=session_id,
            intent=top_intent.intent if top_intent else None,
            intent_confidence=top_intent.confidence if top_intent else None,
            entities=[e.entity for e in response.entities],
            has_output=response.output is not None
        )

    def log_dispatch_result(self, session_id: str, result: DispatchResult) -> None:
        """Log how a reply was completed"""
        if not self.enabled:
            return

        self.logger.info(
            "Dispatch result",
            event_type=AuditEventType.DISPATCH_RESULT,
            session_id=session_id,
            branch=result.branch.value,
            line_count=len(result.lines),
            request_location=result.request_location,
            flights_found=len(result.flights_found),
            error_code=result.error
        )

    def log_error(
        self,
        session_id: str,
        error_type: str,
        error_message: str,
        error_code: Optional[Any] = None,
        request_id: Optional[str] = None
    ) -> None:
        """Log an error raised while handling a turn"""
        self.logger.error(
            "Error occurred",
            event_type=AuditEventType.ERROR_OCCURRED,
            session_id=session_id,
            request_id=request_id,
            error_type=error_type,
            error_message=error_message,
            error_code=error_code
        )

    def _sanitize_text(self, text: str) -> str:
        """Mask e-mail addresses and long digit runs such as phone numbers"""
        text = re.sub(r'\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b', '[EMAIL]', text)
        text = re.sub(r'\+?\d[\d\s-]{8,}\d', '[PHONE]', text)
        return text

    def _sanitize_context(self, context: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: "[MASKED]" if key in self.pii_fields else value
            for key, value in (context or {}).items()
        }


# Global audit logger instance
audit_logger = AuditLogger()
