"""
Core data types for the airline bot
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityType(str, Enum):
    """Entities the dialog workspace is trained to extract"""
    LOCATION = "sys-location"
    AIRPORT = "airport"
    FLIGHT = "flight"


class IntentType(str, Enum):
    """Intents the dialog workspace classifies utterances into"""
    AIRPORT_CODE = "airport-code"
    FLIGHT_STATUS = "flight-status"
    AIRPORT_STATUS = "airport-status"
    AIRPORT_DISTANCE = "airport-distance"
    TIME_TO_AIRPORT = "time-to-airport"


class ContextVar(str, Enum):
    """Well-known conversation context variables"""
    AIRPORT = "airport"
    LOCATION = "location"
    FLIGHT = "flight"
    CURRENT_LOCATION = "current_location"


class DispatchBranch(str, Enum):
    """Which response scenario handled a dialog response"""
    FALLBACK = "fallback"
    DESTINATION = "destination"
    FLIGHT_NUMBER = "flight_number"
    FLIGHT_STATUS = "flight_status"
    AIRPORT_STATUS = "airport_status"
    AIRPORT_DISTANCE = "airport_distance"
    TIME_TO_AIRPORT = "time_to_airport"
    PASSTHROUGH = "passthrough"


class _ApiModel(BaseModel):
    """Base for models read from the airline API (camelCase on the wire)"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# Reference Data Models
class Coordinates(_ApiModel):
    """Geographic position"""
    latitude: float
    longitude: float


class Airport(_ApiModel):
    """Airport served by the airline"""
    iata_code: str = Field(..., alias="iataCode")
    city_code: Optional[str] = Field(None, alias="cityCode")
    name: Optional[str] = None
    coordinates: Coordinates


class City(_ApiModel):
    """City served by the airline"""
    name: str
    code: str


@dataclass
class RecordBatch:
    """Records parsed from a list endpoint, less those that failed validation"""
    records: List[Any] = field(default_factory=list)
    skipped: int = 0


# Flight Models
class FlightTime(_ApiModel):
    """Estimated and (once known) actual time of a departure or arrival"""
    estimated: Optional[str] = None
    actual: Optional[str] = None

    @property
    def best(self) -> Optional[str]:
        """Actual time when reported, otherwise the estimate"""
        return self.actual if self.actual is not None else self.estimated


class FlightAirport(_ApiModel):
    iata_code: str = Field(..., alias="iataCode")


class FlightStatus(_ApiModel):
    message: str = ""


class Flight(_ApiModel):
    """Flight information returned by the flight info API"""
    number: str
    departure_airport: FlightAirport = Field(..., alias="departureAirport")
    arrival_airport: FlightAirport = Field(..., alias="arrivalAirport")
    departure_time: FlightTime = Field(default_factory=FlightTime, alias="departureTime")
    arrival_time: FlightTime = Field(default_factory=FlightTime, alias="arrivalTime")
    status: FlightStatus = Field(default_factory=FlightStatus)

    @field_validator("number", mode="before")
    @classmethod
    def _number_as_string(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


# Dialog Service Models
class Intent(BaseModel):
    """Classified purpose of an utterance"""
    intent: str
    confidence: float = 0.0


class EntityGroup(BaseModel):
    """Capture group of a pattern entity"""
    group: Optional[str] = None
    location: List[int] = Field(default_factory=list)


class Entity(BaseModel):
    """Entity extracted from an utterance"""
    entity: str
    value: Optional[str] = None
    confidence: float = 0.0
    location: List[int] = Field(default_factory=list)
    groups: List[EntityGroup] = Field(default_factory=list)


class MessageInput(BaseModel):
    """User input sent to the dialog service"""
    model_config = ConfigDict(extra="allow")

    text: Optional[str] = None


class NLUOutput(BaseModel):
    """Canned reply produced by the dialog service"""
    model_config = ConfigDict(extra="allow")

    text: List[str] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _text_as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class NLUResponse(BaseModel):
    """Response from the dialog service message call"""
    model_config = ConfigDict(extra="allow")

    output: Optional[NLUOutput] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    intents: List[Intent] = Field(default_factory=list)
    entities: List[Entity] = Field(default_factory=list)
    input: MessageInput = Field(default_factory=MessageInput)


class EntityValue(BaseModel):
    """Value added to a dialog workspace entity vocabulary"""
    value: str
    synonyms: List[str] = Field(default_factory=list)
    value_type: str = "synonyms"


# Request and Response Models
class MessageRequest(BaseModel):
    """Body of POST /api/message"""
    model_config = ConfigDict(extra="allow")

    input: Optional[MessageInput] = None
    context: Dict[str, Any] = Field(default_factory=dict)


class DispatchResult(BaseModel):
    """Outcome of dispatching a dialog response"""
    response: NLUResponse
    lines: List[str] = Field(default_factory=list)
    request_location: bool = False
    context: Dict[str, Any] = Field(default_factory=dict)
    flights_found: List[Flight] = Field(default_factory=list)
    branch: DispatchBranch = DispatchBranch.PASSTHROUGH
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Render the dialog-style JSON returned to the chat client"""
        payload = self.response.model_dump(mode="json", exclude_none=True)
        output = payload.get("output") or {}
        output["text"] = list(self.lines)
        payload["output"] = output
        payload["context"] = self.context
        payload["requestLocation"] = self.request_location
        if self.error:
            payload["error_code"] = self.error
        return payload


# Custom Exceptions
class AirlineBotError(Exception):
    """Base exception for airline bot"""
    pass


class UpstreamAPIError(AirlineBotError):
    """Exception for failed calls to the airline or maps APIs"""
    def __init__(self, message: str, status_code: int = 500, error_code: str = "API_ERROR"):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class AirlineAPIError(UpstreamAPIError):
    """Custom exception for airline API errors"""
    pass


class MapsAPIError(UpstreamAPIError):
    """Custom exception for maps API errors"""
    pass


class AssistantError(AirlineBotError):
    """Exception for dialog service transport errors"""
    def __init__(self, message: str, code: int = 500, body: Optional[Dict[str, Any]] = None):
        self.message = message
        self.code = code
        self.body = body or {"error": message, "code": code}
        super().__init__(message)

