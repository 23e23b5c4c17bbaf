"""
Tests for the conversation session
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from airline_bot.services.conversation import ConversationSession
from airline_bot.services.reference_data import ReferenceData
from airline_bot.services.response_dispatcher import ResponseDispatcher
from airline_bot.types import Airport, AssistantError, City, Flight, NLUResponse


def flight_response(text, start, end, context=None):
    return NLUResponse.model_validate({
        "input": {"text": text},
        "context": context or {},
        "intents": [],
        "entities": [{
            "entity": "flight",
            "confidence": 1.0,
            "location": [start, end],
            "groups": [{"group": "group_0", "location": [start, end]},
                       {"group": "group_1", "location": [start, end]}]
        }],
        "output": {"text": []}
    })


@pytest.fixture
def assistant_client():
    client = MagicMock()
    client.message = AsyncMock(return_value=NLUResponse.model_validate({
        "output": {"text": ["Hello"]}, "context": {"conversation_id": "c1"}
    }))
    return client


@pytest.fixture
def airline_client():
    client = MagicMock()
    client.get_flights_by_number = AsyncMock(return_value=[])
    client.get_flights_from = AsyncMock(return_value=[])
    return client


@pytest.fixture
def session(assistant_client, airline_client):
    dispatcher = ResponseDispatcher(airline_client, MagicMock(), ReferenceData(), confidence_threshold=0.6)
    return ConversationSession(assistant_client, dispatcher, workspace_id="ws1", session_id="s1")


class TestConversationSession:
    """Test context handling and turn orchestration"""

    def test_prepare_uses_context_by_value(self, session):
        ctx = {"airport": "DUB", "current_location": {"latitude": 1.0, "longitude": 2.0}}
        session.context(ctx)
        payload = session.prepare({"text": "hi"})

        assert payload == {"workspace_id": "ws1", "context": ctx, "input": {"text": "hi"}}
        assert payload["context"] is not ctx

        # Later changes to the caller's dict do not leak into the session
        ctx["airport"] = "STN"
        ctx["current_location"]["latitude"] = 9.0
        assert session.prepare(None)["context"]["airport"] == "DUB"
        assert session.prepare(None)["context"]["current_location"]["latitude"] == 1.0

    def test_context_replaces_wholesale(self, session):
        session.context({"airport": "DUB", "flight": "1234"})
        session.context({"location": "London"})

        assert session.current_context == {"location": "London"}

    def test_context_none_clears(self, session):
        session.context({"airport": "DUB"})
        session.context(None)

        assert session.current_context == {}

    @pytest.mark.asyncio
    async def test_send_passes_exact_context(self, session, assistant_client):
        ctx = {"airport": "DUB"}
        session.context(ctx)
        result = await session.send({"text": "hi"})

        assistant_client.message.assert_awaited_once_with(
            workspace_id="ws1", context={"airport": "DUB"}, input={"text": "hi"}
        )
        assert result.lines == ["Hello"]
        assert session.current_context == {"conversation_id": "c1"}

    @pytest.mark.asyncio
    async def test_send_stores_flight_number_in_context(self, session, assistant_client, airline_client):
        assistant_client.message.return_value = flight_response("What about RYR1234?", 11, 18)
        result = await session.send({"text": "What about RYR1234?"})

        airline_client.get_flights_by_number.assert_awaited_once_with("1234")
        assert session.current_context["flight"] == "1234"
        assert result.context["flight"] == "1234"

    @pytest.mark.asyncio
    async def test_send_keeps_last_flights_found(self, assistant_client, airline_client):
        flight = Flight.model_validate({
            "number": "202",
            "departureAirport": {"iataCode": "DUB"},
            "arrivalAirport": {"iataCode": "STN"},
        })
        airline_client.get_flights_from.return_value = [flight]
        reference_data = ReferenceData(
            cities=[City(name="London", code="LONDON")],
            airports=[Airport.model_validate({"iataCode": "STN", "cityCode": "LONDON",
                                              "coordinates": {"latitude": 51.885, "longitude": 0.235}})]
        )
        dispatcher = ResponseDispatcher(airline_client, MagicMock(), reference_data)
        session = ConversationSession(assistant_client, dispatcher, workspace_id="ws1")
        assistant_client.message.return_value = NLUResponse.model_validate({
            "output": {"text": []},
            "context": {"airport": "DUB", "location": "London"},
            "entities": [{"entity": "sys-location", "value": "London", "confidence": 0.9}]
        })

        await session.send({"text": "to London"})

        assert [f.number for f in session.last_flights_found] == ["202"]

    @pytest.mark.asyncio
    async def test_send_propagates_dialog_errors(self, session, assistant_client):
        assistant_client.message.side_effect = AssistantError("Dialog service error: 401", 401)

        with pytest.raises(AssistantError) as exc_info:
            await session.send({"text": "hi"})

        assert exc_info.value.code == 401
