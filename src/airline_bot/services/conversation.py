"""
Conversation session: one dialog turn from user input to completed reply
"""

import copy
import uuid
import structlog
from typing import Any, Dict, List, Optional

from ..config import config
from ..types import DispatchResult, Flight
from ..clients.assistant_client import AssistantClient
from .response_dispatcher import ResponseDispatcher
from .audit_logger import audit_logger


logger = structlog.get_logger(__name__)


class ConversationSession:
    """
    Holds the context of a single conversation and runs its turns.

    The context is owned by the session: it is copied in by context(),
    copied into every outbound dialog request, and replaced by the context
    returned from the dispatcher after each turn.
    """

    def __init__(
        self,
        assistant_client: AssistantClient,
        dispatcher: ResponseDispatcher,
        workspace_id: str = None,
        session_id: str = None
    ):
        self.assistant_client = assistant_client
        self.dispatcher = dispatcher
        self.workspace_id = workspace_id or config.assistant.workspace_id
        self.session_id = session_id or uuid.uuid4().hex
        self._context: Dict[str, Any] = {}
        # Candidates from the last destination lookup; no later turn reads them yet
        self.last_flights_found: List[Flight] = []

    def context(self, ctx: Optional[Dict[str, Any]]) -> None:
        """Replace the held context wholesale"""
        self._context = copy.deepcopy(ctx) if ctx else {}

    @property
    def current_context(self) -> Dict[str, Any]:
        return copy.deepcopy(self._context)

    def prepare(self, input: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Build the dialog request payload for the held context"""
        return {
            "workspace_id": self.workspace_id,
            "context": copy.deepcopy(self._context),
            "input": input,
        }

    async def send(self, input: Optional[Dict[str, Any]]) -> DispatchResult:
        """
        Run one turn: dialog service, then response dispatch.

        Args:
            input: User input, e.g. {"text": "Where can I fly from DUB?"}

        Returns:
            DispatchResult for the turn

        Raises:
            AssistantError: when the dialog service call fails
        """
        payload = self.prepare(input)
        response = await self.assistant_client.message(**payload)
        audit_logger.log_dialog_response(self.session_id, response)

        result = await self.dispatcher.parse(response)
        self._context = copy.deepcopy(result.context)
        if result.flights_found:
            self.last_flights_found = list(result.flights_found)

        audit_logger.log_dispatch_result(self.session_id, result)
        return result
