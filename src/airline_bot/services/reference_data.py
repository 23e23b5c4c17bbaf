"""
Reference data (cities and airports) loaded once at startup.

The airline API is queried for every city and airport it serves. Airport
codes are mirrored into the dialog workspace's "airport" entity so the
dialog service recognises them in customer messages. Each step's outcome is
kept in a ReferenceDataStatus that the health endpoint reports.
"""

import asyncio
import structlog
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..types import Airport, City, EntityType, EntityValue, RecordBatch, AirlineAPIError, AssistantError
from ..clients.airline_api_client import AirlineAPIClient
from ..clients.assistant_client import AssistantClient
from ..utils.validators import validate_airport_code


logger = structlog.get_logger(__name__)


class ReferenceDataStatus(BaseModel):
    """Outcome of the startup reference data load"""
    cities_loaded: bool = False
    airports_loaded: bool = False
    vocabulary_synced: bool = False
    city_count: int = 0
    airport_count: int = 0
    skipped_records: Dict[str, int] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.cities_loaded and self.airports_loaded and self.vocabulary_synced


class ReferenceData:
    """Read-only lookup tables for cities and airports"""

    def __init__(self, cities: Optional[List[City]] = None, airports: Optional[List[Airport]] = None):
        self._cities: List[City] = []
        self._airports: Dict[str, Airport] = {}
        if cities is not None:
            self.set_cities(cities)
        if airports is not None:
            self.set_airports(airports)

    def set_cities(self, cities: List[City]) -> None:
        self._cities = list(cities)

    def set_airports(self, airports: List[Airport]) -> None:
        self._airports = {a.iata_code.upper(): a for a in airports}

    @property
    def cities(self) -> List[City]:
        return list(self._cities)

    @property
    def airports(self) -> List[Airport]:
        return list(self._airports.values())

    def find_city(self, name: str) -> Optional[City]:
        """Find a city by case-insensitive name"""
        if not isinstance(name, str) or not name:
            return None
        wanted = name.strip().lower()
        return next((c for c in self._cities if c.name.lower() == wanted), None)

    def airports_in_city(self, city_code: str) -> List[Airport]:
        """All airports serving a city"""
        return [a for a in self._airports.values() if a.city_code == city_code]

    def find_airport(self, iata_code: str) -> Optional[Airport]:
        """Find an airport by case-insensitive IATA code"""
        if not isinstance(iata_code, str) or not validate_airport_code(iata_code):
            return None
        return self._airports.get(iata_code.strip().upper())


class ReferenceDataLoader:
    """Loads reference data and mirrors airport codes into the dialog workspace"""

    def __init__(
        self,
        airline_client: AirlineAPIClient,
        assistant_client: AssistantClient,
        workspace_id: str,
        reference_data: Optional[ReferenceData] = None
    ):
        self.airline_client = airline_client
        self.assistant_client = assistant_client
        self.workspace_id = workspace_id
        self.reference_data = reference_data or ReferenceData()
        self.status = ReferenceDataStatus()

    async def load(self) -> ReferenceDataStatus:
        """
        Fetch cities and airports concurrently, then sync the airport vocabulary.

        Failures are recorded on the returned status rather than raised; no
        step is retried.
        """
        status = ReferenceDataStatus()

        cities_result, airports_result = await asyncio.gather(
            self.airline_client.get_cities(),
            self.airline_client.get_airports(),
            return_exceptions=True
        )

        if not self._record_failure(status, "cities", cities_result):
            self.reference_data.set_cities(cities_result.records)
            status.cities_loaded = True
            status.city_count = len(cities_result.records)
            self._record_skipped(status, "cities", cities_result)

        if self._record_failure(status, "airports", airports_result):
            status.errors.setdefault("vocabulary", "skipped: airports not loaded")
        else:
            self.reference_data.set_airports(airports_result.records)
            status.airports_loaded = True
            status.airport_count = len(airports_result.records)
            self._record_skipped(status, "airports", airports_result)
            await self._sync_vocabulary(airports_result.records, status)

        self.status = status
        logger.info(
            "Reference data loaded",
            cities=status.city_count,
            airports=status.airport_count,
            vocabulary_synced=status.vocabulary_synced,
            skipped=status.skipped_records,
            healthy=status.healthy,
            errors=status.errors
        )
        return status

    async def _sync_vocabulary(self, airports: List[Airport], status: ReferenceDataStatus) -> None:
        values = [
            EntityValue(value=a.iata_code, synonyms=[a.iata_code.lower()])
            for a in airports
        ]
        try:
            await self.assistant_client.update_entity(
                self.workspace_id, EntityType.AIRPORT.value, values
            )
        except AssistantError as e:
            logger.warning("Airport vocabulary sync failed", error=str(e), code=e.code)
            status.errors["vocabulary"] = str(e)
            return
        status.vocabulary_synced = True

    @staticmethod
    def _record_failure(status: ReferenceDataStatus, name: str, result) -> bool:
        if isinstance(result, AirlineAPIError):
            logger.warning("Reference data fetch failed", data_type=name, error=str(result))
            status.errors[name] = str(result)
            return True
        if isinstance(result, BaseException):
            raise result
        return False

    @staticmethod
    def _record_skipped(status: ReferenceDataStatus, name: str, batch: RecordBatch) -> None:
        if batch.skipped:
            status.skipped_records[name] = batch.skipped
