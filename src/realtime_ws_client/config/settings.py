"""Settings configuration"""
from dataclasses import dataclass
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from the environment"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False,
        validate_assignment=True
    )

    # Endpoints
    ws_base_url: str = Field(default="ws://127.0.0.1:5000/ws", validation_alias="WS_BASE_URL")
    api_base_url: str = Field(default="http://localhost:5000/api/v1", validation_alias="API_BASE_URL")

    # Reconnection
    max_reconnect_attempts: int = Field(default=10, validation_alias="MAX_RECONNECT_ATTEMPTS", ge=0)
    base_reconnect_interval_ms: int = Field(default=1000, validation_alias="BASE_RECONNECT_INTERVAL_MS", ge=0)
    max_reconnect_interval_ms: int = Field(default=30000, validation_alias="MAX_RECONNECT_INTERVAL_MS", ge=0)

    # Heartbeat
    ping_interval_ms: int = Field(default=30000, validation_alias="PING_INTERVAL_MS", gt=0)

    # Authentication
    token_refresh_timeout: float = Field(default=10.0, validation_alias="TOKEN_REFRESH_TIMEOUT", gt=0)

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT", pattern="^(json|console)$")


@dataclass
class ClientConfig:
    """Knobs consumed by the connection manager.

    Intervals are milliseconds.
    """

    ws_base_url: str = "ws://127.0.0.1:5000/ws"
    max_reconnect_attempts: int = 10
    base_reconnect_interval_ms: int = 1000
    max_reconnect_interval_ms: int = 30000
    ping_interval_ms: int = 30000

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ClientConfig":
        settings = settings or Settings()
        return cls(
            ws_base_url=settings.ws_base_url,
            max_reconnect_attempts=settings.max_reconnect_attempts,
            base_reconnect_interval_ms=settings.base_reconnect_interval_ms,
            max_reconnect_interval_ms=settings.max_reconnect_interval_ms,
            ping_interval_ms=settings.ping_interval_ms,
        )
