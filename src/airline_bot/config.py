"""
Configuration management for airline bot
"""

from typing import Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """Server configuration"""
    port: int = 8000
    host: str = "0.0.0.0"
    environment: str = "development"
    debug: bool = False

    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", extra="ignore")


class AirlineAPIConfig(BaseSettings):
    """Airline (Ryanair API gateway) configuration"""
    base_url: str = "http://apigateway.ryanair.com/pub/v1"
    timeout: float = 10.0  # seconds
    key: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="RYANAIR_", env_file=".env", extra="ignore")


class MapsAPIConfig(BaseSettings):
    """Maps (Google Maps web services) configuration"""
    base_url: str = "https://maps.googleapis.com"
    timeout: float = 10.0  # seconds
    key: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="GOOGLE_", env_file=".env", extra="ignore")


class AssistantConfig(BaseSettings):
    """Dialog service configuration"""
    url: str = "https://gateway.watsonplatform.net/assistant/api"
    apikey: Optional[str] = None
    version: str = "2017-05-26"
    timeout: float = 15.0  # seconds
    workspace_id: str = Field(
        default="",
        validation_alias=AliasChoices("WORKSPACE_ID", "ASSISTANT_WORKSPACE_ID"),
    )

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_", env_file=".env", extra="ignore")


class DispatchConfig(BaseSettings):
    """Response dispatch configuration"""
    confidence_threshold: float = 0.6

    model_config = SettingsConfigDict(env_prefix="DISPATCH_", env_file=".env", extra="ignore")


class LoggingConfig(BaseSettings):
    """Logging configuration"""
    level: str = "INFO"
    enable_audit: bool = True
    log_format: str = "json"  # json or text

    model_config = SettingsConfigDict(env_prefix="LOGGING_", env_file=".env", extra="ignore")


class Config:
    """Main configuration class"""

    def __init__(self):
        self.server = ServerConfig()
        self.airline_api = AirlineAPIConfig()
        self.maps_api = MapsAPIConfig()
        self.assistant = AssistantConfig()
        self.dispatch = DispatchConfig()
        self.logging = LoggingConfig()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.server.environment.lower() == "development"


# Global configuration instance
config = Config()
