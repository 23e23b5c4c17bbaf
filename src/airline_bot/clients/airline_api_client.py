"""
Airline API Client for the Ryanair public API gateway
"""

import re
import time
import httpx
import structlog
from typing import Dict, List, Optional, Any, Type
from pydantic import BaseModel, ValidationError

from ..types import AirlineAPIError, Airport, City, Flight, RecordBatch
from ..config import config

logger = structlog.get_logger(__name__)


class AirlineAPIClient:
    """HTTP client for airline API operations"""

    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url or config.airline_api.base_url
        self.api_key = api_key or config.airline_api.key
        self.timeout = timeout or config.airline_api.timeout

        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": "AirlineBot/1.0"
            }
        )

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a gateway resource and return its parsed JSON body.

        Args:
            path: Resource path relative to the gateway, e.g. "core/3/airports"
            params: Query parameters; the API key is added to a copy

        Returns:
            Parsed JSON body
        """
        query = dict(params or {})
        query["apikey"] = self.api_key
        path = re.sub(r"^\s*/", "", path)

        start_time = time.perf_counter()
        try:
            response = await self.client.get(path, params=query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            self._log_call(path, start_time, success=False, status_code=e.response.status_code)
            raise AirlineAPIError(
                f"HTTP error: {e.response.status_code}", e.response.status_code, "HTTP_ERROR"
            ) from e
        except httpx.RequestError as e:
            self._log_call(path, start_time, success=False)
            raise AirlineAPIError(f"Connection error: {str(e)}", 503, "CONNECTION_ERROR") from e
        except ValueError as e:
            self._log_call(path, start_time, success=False)
            raise AirlineAPIError(f"Invalid JSON body: {str(e)}", 502, "INVALID_RESPONSE") from e

        self._log_call(path, start_time, success=True, status_code=response.status_code)
        return data

    async def get_cities(self) -> RecordBatch:
        """Get every city the airline serves"""
        data = await self.get("core/3/cities")
        return self._parse_records(City, data, "cities")

    async def get_airports(self) -> RecordBatch:
        """Get every airport the airline serves"""
        data = await self.get("core/3/airports")
        return self._parse_records(Airport, data, "airports")

    async def get_flights_from(self, departure_iata: str) -> List[Flight]:
        """Get today's flights departing from an airport"""
        data = await self.get("flightinfo/3/flights", {"departureAirportIataCode": departure_iata})
        return self._parse_flights(data)

    async def get_flights_by_number(self, number: str) -> List[Flight]:
        """Get flights matching a flight number (without carrier code)"""
        data = await self.get("flightinfo/3/flights", {"number": number})
        return self._parse_flights(data)

    async def get_closures_near(
        self,
        latitude: float,
        longitude: float,
        nearby_airports_limit: int = 1
    ) -> List[Dict[str, Any]]:
        """Get closures reported for airports near a position"""
        data = await self.get("aggregate/3/common", {
            "embedded": "closures",
            "latitude": latitude,
            "longitude": longitude,
            "nearbyAirportsLimit": nearby_airports_limit
        })
        try:
            closures = data.get("closures") or []
        except AttributeError as e:
            raise AirlineAPIError("Unexpected closures body", 502, "INVALID_RESPONSE") from e
        if not isinstance(closures, list):
            raise AirlineAPIError("Unexpected closures body", 502, "INVALID_RESPONSE")
        return closures

    @staticmethod
    def _parse_flights(data: Dict[str, Any]) -> List[Flight]:
        try:
            return [Flight.model_validate(item) for item in data.get("flights") or []]
        except (ValidationError, AttributeError, TypeError) as e:
            raise AirlineAPIError(f"Unexpected flight info body: {e}", 502, "INVALID_RESPONSE") from e

    @staticmethod
    def _parse_records(model: Type[BaseModel], data: Any, data_type: str) -> RecordBatch:
        # One bad record must not cost the rest of the table
        if not isinstance(data, list):
            raise AirlineAPIError(f"Expected a list of {data_type}", 502, "INVALID_RESPONSE")

        batch = RecordBatch()
        for item in data:
            try:
                batch.records.append(model.model_validate(item))
            except ValidationError as e:
                batch.skipped += 1
                logger.warning("Skipping invalid record", data_type=data_type, record=item, error=str(e))
        return batch

    def _log_call(self, path: str, start_time: float, success: bool, status_code: int = None) -> None:
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        log = logger.info if success else logger.warning
        log(
            "api_call",
            api="airline",
            endpoint=path,
            duration_ms=duration_ms,
            success=success,
            status_code=status_code
        )

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
