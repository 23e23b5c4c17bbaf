"""
Response dispatcher for dialog service replies.

Inspects the intents, entities and context of a dialog response, picks the
scenario it describes and completes the reply with data from the airline and
maps APIs. Scenarios are checked in a fixed order and the first match wins:

1. destination lookup (location entity with airport and location in context)
2. flight number given in the message (flight entity)
3. flight status for the flight held in context
4. closures at the airport held in context
5. distance to the airport held in context
6. driving time to the airport held in context

A response without any output gets a fixed fallback line. Anything else is
passed through unchanged.
"""

import copy
import structlog
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from pydantic import ValidationError

from ..config import config
from ..types import (
    NLUResponse, DispatchResult, DispatchBranch, Flight, Airport, Coordinates,
    Entity, EntityType, IntentType, ContextVar, UpstreamAPIError, MapsAPIError
)
from ..clients.airline_api_client import AirlineAPIClient
from ..clients.maps_api_client import MapsAPIClient
from ..utils.validators import CARRIER_PREFIX, extract_span, strip_carrier_prefix
from .reference_data import ReferenceData


logger = structlog.get_logger(__name__)

# Placeholder the dialog workspace stores before a real flight number is known
FLIGHT_NUMBER_PLACEHOLDER = "flightNumber"

FALLBACK_MESSAGE = "Didn't quite get that"
UPSTREAM_FAILURE_MESSAGE = "Sorry, I can't reach our flight information right now"
UNKNOWN_TIME = "an unknown time"

Handler = Callable[[NLUResponse, DispatchResult], Awaitable[None]]


def format_flight_status(flight: Flight) -> str:
    """
    Describe a flight's departure, arrival and status.

    Actual times are preferred over estimates, independently for departure
    and arrival. A leg with neither time reads as an unknown time.
    """
    return (
        f"Your flight {CARRIER_PREFIX}{flight.number} will depart from "
        f"{flight.departure_airport.iata_code} at {flight.departure_time.best or UNKNOWN_TIME} "
        f"and arrive on {flight.arrival_airport.iata_code} at {flight.arrival_time.best or UNKNOWN_TIME}. "
        f"Your flight is currently {flight.status.message}"
    )


class ResponseDispatcher:
    """Completes dialog responses with airline and maps data"""

    def __init__(
        self,
        airline_client: AirlineAPIClient,
        maps_client: MapsAPIClient,
        reference_data: ReferenceData,
        confidence_threshold: float = None
    ):
        self.airline_client = airline_client
        self.maps_client = maps_client
        self.reference_data = reference_data
        if confidence_threshold is None:
            confidence_threshold = config.dispatch.confidence_threshold
        self.confidence_threshold = confidence_threshold

    # Response inspection

    def has_intent(self, response: NLUResponse, intent: IntentType) -> bool:
        return any(
            i.intent == intent.value and i.confidence > self.confidence_threshold
            for i in response.intents
        )

    def find_entity(self, response: NLUResponse, entity: EntityType) -> Optional[Entity]:
        return next(
            (
                e for e in response.entities
                if e.entity == entity.value and e.confidence > self.confidence_threshold
            ),
            None
        )

    def has_entity(self, response: NLUResponse, entity: EntityType) -> bool:
        return self.find_entity(response, entity) is not None

    @staticmethod
    def has_context(context: Dict[str, Any], var: ContextVar) -> bool:
        value = context.get(var.value)
        if var is ContextVar.CURRENT_LOCATION:
            return value is not None and value != ""
        # Airport, location and flight are only usable as text
        return isinstance(value, str) and value.strip() != ""

    # Dispatch

    async def parse(self, response: NLUResponse) -> DispatchResult:
        """
        Complete a dialog response.

        Args:
            response: Dialog response for the current turn

        Returns:
            DispatchResult with the reply lines, the updated context and
            whether the client must supply its current location
        """
        context = copy.deepcopy(response.context)
        result = DispatchResult(response=response, context=context)

        if response.output is None:
            result.lines = [FALLBACK_MESSAGE]
            result.branch = DispatchBranch.FALLBACK
            logger.info("Dialog response without output, using fallback")
            return result

        result.lines = list(response.output.text)

        selected = self._select_branch(response, result.context)
        if selected is None:
            return result

        branch, handler = selected
        result.branch = branch
        logger.debug("Dispatching dialog response", branch=branch.value)

        try:
            await handler(response, result)
        except UpstreamAPIError as e:
            logger.warning(
                "Upstream API call failed",
                branch=branch.value,
                error=str(e),
                status_code=e.status_code,
                error_code=e.error_code
            )
            result.error = e.error_code
            result.lines.append(UPSTREAM_FAILURE_MESSAGE)

        return result

    def _select_branch(
        self,
        response: NLUResponse,
        context: Dict[str, Any]
    ) -> Optional[Tuple[DispatchBranch, Handler]]:
        if (self.has_entity(response, EntityType.LOCATION)
                and self.has_context(context, ContextVar.AIRPORT)
                and self.has_context(context, ContextVar.LOCATION)):
            return DispatchBranch.DESTINATION, self._handle_destination

        if self.has_entity(response, EntityType.FLIGHT):
            return DispatchBranch.FLIGHT_NUMBER, self._handle_flight_number

        if (self.has_intent(response, IntentType.FLIGHT_STATUS)
                and self.has_context(context, ContextVar.FLIGHT)
                and context[ContextVar.FLIGHT.value] != FLIGHT_NUMBER_PLACEHOLDER):
            return DispatchBranch.FLIGHT_STATUS, self._handle_flight_status

        if (self.has_intent(response, IntentType.AIRPORT_STATUS)
                and self.has_context(context, ContextVar.AIRPORT)):
            return DispatchBranch.AIRPORT_STATUS, self._handle_airport_status

        if self.has_intent(response, IntentType.AIRPORT_DISTANCE):
            return DispatchBranch.AIRPORT_DISTANCE, self._handle_airport_distance

        if self.has_intent(response, IntentType.TIME_TO_AIRPORT):
            return DispatchBranch.TIME_TO_AIRPORT, self._handle_time_to_airport

        return None

    # Scenarios

    async def _handle_destination(self, response: NLUResponse, result: DispatchResult) -> None:
        location = result.context[ContextVar.LOCATION.value]
        departure = result.context[ContextVar.AIRPORT.value]
        not_served = f"We don't fly to {location} sorry :("

        city = self.reference_data.find_city(location)
        if city is None:
            result.lines.append(not_served)
            return

        airports = self.reference_data.airports_in_city(city.code)
        if not airports:
            result.lines.append(not_served)
            return

        airport_codes = {a.iata_code for a in airports}
        flights = await self.airline_client.get_flights_from(departure)
        matches = [f for f in flights if f.arrival_airport.iata_code in airport_codes]

        if not matches:
            result.lines.append(f"We aren't flying from {departure} to {location} today :/")
            return

        result.flights_found = matches
        result.lines.append("Please confirm your flight number")
        result.lines.append("<br />".join(f"{CARRIER_PREFIX}{f.number}" for f in matches))

    async def _handle_flight_number(self, response: NLUResponse, result: DispatchResult) -> None:
        entity = self.find_entity(response, EntityType.FLIGHT)
        number = self._extract_flight_number(response.input.text, entity)
        if number is None:
            logger.warning("Flight entity span not found in input", entity=entity.model_dump())
            result.lines.append("Oops, we couldn't find your flight")
            return

        result.context[ContextVar.FLIGHT.value] = number
        await self._report_flight(number, result)

    async def _handle_flight_status(self, response: NLUResponse, result: DispatchResult) -> None:
        await self._report_flight(result.context[ContextVar.FLIGHT.value], result)

    async def _handle_airport_status(self, response: NLUResponse, result: DispatchResult) -> None:
        airport = self.reference_data.find_airport(result.context[ContextVar.AIRPORT.value])
        if airport is None:
            logger.info("Unknown airport for closures", airport=result.context[ContextVar.AIRPORT.value])
            return

        closures = await self.airline_client.get_closures_near(
            airport.coordinates.latitude,
            airport.coordinates.longitude,
            nearby_airports_limit=1
        )
        if not closures:
            result.lines = [f"There are no closures for {airport.iata_code}"]
        else:
            result.lines = [f"Please advise there is closure for {airport.iata_code}"]

    async def _handle_airport_distance(self, response: NLUResponse, result: DispatchResult) -> None:
        route = self._route_to_airport(result)
        if route is None:
            return
        origin, airport = route
        element = await self.maps_client.distance_matrix(origin, airport.coordinates)
        distance = self._element_text(element, "distance")
        result.lines.append(f"It is {distance} to {airport.iata_code}")

    async def _handle_time_to_airport(self, response: NLUResponse, result: DispatchResult) -> None:
        route = self._route_to_airport(result)
        if route is None:
            return
        origin, airport = route
        element = await self.maps_client.distance_matrix(origin, airport.coordinates)
        duration = self._element_text(element, "duration")
        result.lines.append(f"It's a {duration} drive to {airport.iata_code}")

    # Helpers

    async def _report_flight(self, number: str, result: DispatchResult) -> None:
        flights = await self.airline_client.get_flights_by_number(number)
        if flights:
            result.lines.append("Here's some info")
            result.lines.append(format_flight_status(flights[0]))
        else:
            result.lines.append("Oops, we couldn't find your flight")

    @staticmethod
    def _extract_flight_number(text: Optional[str], entity: Entity) -> Optional[str]:
        # The flight pattern's second capture group holds the designator
        if len(entity.groups) > 1 and entity.groups[1].location:
            span = entity.groups[1].location
        else:
            span = entity.location
        designator = extract_span(text, span)
        if designator is None:
            return None
        return strip_carrier_prefix(designator)

    def _route_to_airport(self, result: DispatchResult) -> Optional[Tuple[Coordinates, Airport]]:
        """
        Current position and target airport for distance scenarios.

        Sets request_location when the client has not yet supplied its position.
        """
        if not self.has_context(result.context, ContextVar.CURRENT_LOCATION):
            result.request_location = True
            return None

        try:
            origin = Coordinates.model_validate(result.context[ContextVar.CURRENT_LOCATION.value])
        except ValidationError:
            logger.warning("Malformed current location in context")
            result.request_location = True
            return None

        airport = self.reference_data.find_airport(result.context.get(ContextVar.AIRPORT.value))
        if airport is None:
            logger.info("Unknown airport for route", airport=result.context.get(ContextVar.AIRPORT.value))
            return None

        return origin, airport

    @staticmethod
    def _element_text(element: Dict[str, Any], field: str) -> str:
        if not isinstance(element, dict):
            element = {}
        value = element.get(field)
        text = value.get("text") if isinstance(value, dict) else None
        if not text:
            raise MapsAPIError(
                f"No {field} in distance matrix element: {element.get('status', 'unknown status')}",
                502,
                "NO_ROUTE"
            )
        return text
