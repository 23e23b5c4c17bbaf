"""
Dialog service client (Watson Assistant v1 REST API)
"""

import time
import httpx
import structlog
from typing import Dict, List, Optional, Any

from ..types import AssistantError, EntityValue, NLUResponse
from ..config import config

logger = structlog.get_logger(__name__)


class AssistantClient:
    """HTTP client for the managed dialog service"""

    def __init__(
        self,
        url: str = None,
        api_key: str = None,
        version: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url or config.assistant.url
        self.api_key = api_key or config.assistant.apikey
        self.version = version or config.assistant.version
        self.timeout = timeout or config.assistant.timeout

        self.client = client or httpx.AsyncClient(
            base_url=self.url,
            timeout=self.timeout,
            auth=("apikey", self.api_key or ""),
            headers={
                "Content-Type": "application/json",
                "User-Agent": "AirlineBot/1.0"
            }
        )

    async def message(
        self,
        workspace_id: str,
        context: Optional[Dict[str, Any]] = None,
        input: Optional[Dict[str, Any]] = None
    ) -> NLUResponse:
        """
        Send user input and the current context to the dialog workspace.

        Args:
            workspace_id: Dialog workspace identifier
            context: Conversation context from the previous turn
            input: User input, e.g. {"text": "Is FR1234 on time?"}

        Returns:
            Parsed dialog response (intents, entities, context, output)

        Raises:
            AssistantError: on transport or HTTP failure, carrying the upstream status
        """
        body: Dict[str, Any] = {"input": input or {}}
        if context is not None:
            body["context"] = context

        data = await self._post(f"v1/workspaces/{workspace_id}/message", body)
        return NLUResponse.model_validate(data)

    async def update_entity(
        self,
        workspace_id: str,
        entity: str,
        new_values: List[EntityValue]
    ) -> Dict[str, Any]:
        """
        Replace the values of a workspace entity.

        Args:
            workspace_id: Dialog workspace identifier
            entity: Entity name, e.g. "airport"
            new_values: Values with their synonyms
        """
        body = {
            "values": [
                {"value": v.value, "synonyms": v.synonyms, "type": v.value_type}
                for v in new_values
            ]
        }
        return await self._post(f"v1/workspaces/{workspace_id}/entities/{entity}", body)

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        start_time = time.perf_counter()
        try:
            response = await self.client.post(path, params={"version": self.version}, json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            self._log_call(path, start_time, success=False, status_code=e.response.status_code)
            raise AssistantError(
                f"Dialog service error: {e.response.status_code}",
                e.response.status_code,
                self._error_body(e.response)
            ) from e
        except httpx.RequestError as e:
            self._log_call(path, start_time, success=False)
            raise AssistantError(f"Connection error: {str(e)}", 503) from e
        except ValueError as e:
            self._log_call(path, start_time, success=False)
            raise AssistantError(f"Invalid JSON body: {str(e)}", 502) from e

        self._log_call(path, start_time, success=True, status_code=response.status_code)
        return data

    @staticmethod
    def _error_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {"error": response.text or response.reason_phrase}
        body.setdefault("code", response.status_code)
        return body

    def _log_call(self, path: str, start_time: float, success: bool, status_code: int = None) -> None:
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        log = logger.info if success else logger.warning
        log(
            "api_call",
            api="assistant",
            endpoint=path,
            duration_ms=duration_ms,
            success=success,
            status_code=status_code
        )

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
