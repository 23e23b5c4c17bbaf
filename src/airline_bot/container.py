"""
Dependency injection container for airline bot components
"""

from typing import Any, Dict, Optional
import structlog

from .config import config
from .clients import AirlineAPIClient, MapsAPIClient, AssistantClient
from .services import (
    ReferenceData, ReferenceDataLoader, ReferenceDataStatus,
    ResponseDispatcher, ConversationSession, audit_logger
)

logger = structlog.get_logger()


class ServiceContainer:
    """
    Dependency injection container for managing service instances and their dependencies
    """

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._initialized = False

    async def initialize(
        self,
        airline_client: Optional[AirlineAPIClient] = None,
        maps_client: Optional[MapsAPIClient] = None,
        assistant_client: Optional[AssistantClient] = None
    ) -> ReferenceDataStatus:
        """Initialize all services and load reference data"""
        if not self._initialized:
            logger.info("Initializing service container")
            self.build(airline_client, maps_client, assistant_client)

        status = await self.get_reference_loader().load()
        if not status.healthy:
            logger.warning("Reference data incomplete, running degraded", errors=status.errors)
        return status

    def build(
        self,
        airline_client: Optional[AirlineAPIClient] = None,
        maps_client: Optional[MapsAPIClient] = None,
        assistant_client: Optional[AssistantClient] = None,
        reference_data: Optional[ReferenceData] = None
    ) -> None:
        """Wire services together without touching the network"""
        airline_client = airline_client or AirlineAPIClient()
        maps_client = maps_client or MapsAPIClient()
        assistant_client = assistant_client or AssistantClient()
        reference_data = reference_data or ReferenceData()

        self._services = {
            'airline_client': airline_client,
            'maps_client': maps_client,
            'assistant_client': assistant_client,
            'reference_data': reference_data,
            'reference_loader': ReferenceDataLoader(
                airline_client, assistant_client, config.assistant.workspace_id, reference_data
            ),
            'dispatcher': ResponseDispatcher(airline_client, maps_client, reference_data),
            'audit_logger': audit_logger,
        }
        self._initialized = True
        logger.info("All services registered in container", service_count=len(self._services))

    def get_service(self, service_name: str) -> Any:
        """Get a service by name"""
        if not self._initialized:
            raise RuntimeError("Container not initialized. Call initialize() first.")

        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found in container")

        return self._services[service_name]

    def get_assistant_client(self) -> AssistantClient:
        return self.get_service('assistant_client')

    def get_reference_loader(self) -> ReferenceDataLoader:
        return self.get_service('reference_loader')

    def get_dispatcher(self) -> ResponseDispatcher:
        return self.get_service('dispatcher')

    def create_session(self, context: Optional[Dict[str, Any]] = None) -> ConversationSession:
        """New conversation session scoped to one request"""
        session = ConversationSession(
            self.get_assistant_client(),
            self.get_dispatcher(),
            config.assistant.workspace_id
        )
        session.context(context)
        return session

    async def cleanup(self):
        """Close HTTP clients and clear all services"""
        if not self._initialized:
            return

        logger.info("Cleaning up service container")
        for name in ('airline_client', 'maps_client', 'assistant_client'):
            await self._services[name].close()

        self._services.clear()
        self._initialized = False
        logger.info("Service container cleanup completed")

    def is_initialized(self) -> bool:
        """Check if container is initialized"""
        return self._initialized


# Global container instance
container = ServiceContainer()
