"""
Maps API Client for Google Maps web services
"""

import re
import time
import httpx
import structlog
from typing import Dict, Optional, Any

from ..types import Coordinates, MapsAPIError
from ..config import config
from ..utils.validators import format_coordinates

logger = structlog.get_logger(__name__)


class MapsAPIClient:
    """HTTP client for maps web service operations"""

    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url or config.maps_api.base_url
        self.api_key = api_key or config.maps_api.key
        self.timeout = timeout or config.maps_api.timeout

        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"User-Agent": "AirlineBot/1.0"}
        )

    @staticmethod
    def build_path(product: str, path: str) -> str:
        """Path of a product endpoint, always ending in /json"""
        path = re.sub(r"/\s*$", "", re.sub(r"^\s*/", "", path))
        return f"{product}/api/{path}/json"

    async def get(self, product: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a maps web service endpoint and return its parsed JSON body.

        Args:
            product: Service family path segment, e.g. "maps"
            path: Endpoint within the product, e.g. "distancematrix"
            params: Query parameters; the API key is added to a copy
        """
        query = dict(params or {})
        query["key"] = self.api_key
        endpoint = self.build_path(product, path)

        start_time = time.perf_counter()
        try:
            response = await self.client.get(endpoint, params=query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            self._log_call(endpoint, start_time, success=False, status_code=e.response.status_code)
            raise MapsAPIError(
                f"HTTP error: {e.response.status_code}", e.response.status_code, "HTTP_ERROR"
            ) from e
        except httpx.RequestError as e:
            self._log_call(endpoint, start_time, success=False)
            raise MapsAPIError(f"Connection error: {str(e)}", 503, "CONNECTION_ERROR") from e
        except ValueError as e:
            self._log_call(endpoint, start_time, success=False)
            raise MapsAPIError(f"Invalid JSON body: {str(e)}", 502, "INVALID_RESPONSE") from e

        self._log_call(endpoint, start_time, success=True, status_code=response.status_code)
        return data

    async def distance_matrix(self, origin: Coordinates, destination: Coordinates) -> Dict[str, Any]:
        """
        Get the driving distance and duration between two positions.

        Returns the first matrix element, e.g.
        {"distance": {"text": "12.3 km", ...}, "duration": {"text": "20 mins", ...}}
        """
        data = await self.get("maps", "distancematrix", {
            "origins": format_coordinates(origin.latitude, origin.longitude),
            "destinations": format_coordinates(destination.latitude, destination.longitude)
        })
        try:
            return data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as e:
            status = data.get("status") if isinstance(data, dict) else None
            raise MapsAPIError(
                f"Unexpected distance matrix body: {status or 'unknown status'}",
                502,
                "INVALID_RESPONSE"
            ) from e

    def _log_call(self, endpoint: str, start_time: float, success: bool, status_code: int = None) -> None:
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        log = logger.info if success else logger.warning
        log(
            "api_call",
            api="maps",
            endpoint=endpoint,
            duration_ms=duration_ms,
            success=success,
            status_code=status_code
        )

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
