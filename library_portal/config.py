"""Application configuration settings.

This module defines the ``Settings`` class using ``pydantic-settings`` to
load configuration from environment variables (and an optional ``.env``
file). It centralises all runtime configuration for the service, such as the
data service endpoint, the booking window and logging level.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration values loaded from environment variables.

    Environment variable names map to fields by alias. Only the data service
    URL and key matter in production; the booking window defaults match the
    library's opening hours.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Hosted data service
    data_service_url: str = Field(
        default="http://localhost:54321",
        alias="DATA_SERVICE_URL",
        description="Base URL of the hosted database (REST and auth endpoints live below it).",
    )
    data_service_key: str = Field(
        default="",
        alias="DATA_SERVICE_KEY",
        description="Public API key sent with every request as the ``apikey`` header.",
    )
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        alias="REQUEST_TIMEOUT_SECONDS",
        description="Timeout for data service calls. Unset means the requests default (no timeout).",
    )

    # Booking window
    opening_hour: int = Field(default=8, alias="OPENING_HOUR")
    closing_hour: int = Field(default=20, alias="CLOSING_HOUR")
    slot_minutes: int = Field(default=30, alias="SLOT_MINUTES")
    max_slots_per_booking: int = Field(
        default=4,
        alias="MAX_SLOTS_PER_BOOKING",
        description="Maximum number of slots a single reservation may span (4 x 30 min = 2 hours).",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


# Instantiate settings at module import time. This allows other modules to
# import ``settings`` directly without repeatedly reading environment variables.
settings = Settings()
