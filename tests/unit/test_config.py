"""Test configuration loading."""

import pytest
from pydantic import ValidationError

from realtime_ws_client.config import ClientConfig, Settings


class TestSettings:
    """Test suite for environment settings"""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        for name in ("WS_BASE_URL", "MAX_RECONNECT_ATTEMPTS", "BASE_RECONNECT_INTERVAL_MS", "PING_INTERVAL_MS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.ws_base_url == "ws://127.0.0.1:5000/ws"
        assert settings.max_reconnect_attempts == 10
        assert settings.base_reconnect_interval_ms == 1000
        assert settings.max_reconnect_interval_ms == 30000
        assert settings.ping_interval_ms == 30000

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("WS_BASE_URL", "wss://realtime.example.com/ws")
        monkeypatch.setenv("MAX_RECONNECT_ATTEMPTS", "3")
        monkeypatch.setenv("PING_INTERVAL_MS", "5000")

        settings = Settings(_env_file=None)

        assert settings.ws_base_url == "wss://realtime.example.com/ws"
        assert settings.max_reconnect_attempts == 3
        assert settings.ping_interval_ms == 5000

    def test_invalid_values_rejected(self, monkeypatch):
        """Test validation of bounded fields."""
        monkeypatch.setenv("PING_INTERVAL_MS", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestClientConfig:
    """Test suite for client configuration"""

    def test_from_settings(self, monkeypatch):
        """Test client config mirrors settings."""
        monkeypatch.setenv("MAX_RECONNECT_ATTEMPTS", "4")
        monkeypatch.setenv("BASE_RECONNECT_INTERVAL_MS", "250")

        config = ClientConfig.from_settings(Settings(_env_file=None))

        assert config.max_reconnect_attempts == 4
        assert config.base_reconnect_interval_ms == 250

    def test_client_keyword_overrides(self, make_client):
        """Test constructor keywords win over the base config."""
        client = make_client(config=ClientConfig(max_reconnect_attempts=7, ping_interval_ms=1000), ping_interval_ms=500)

        assert client.config.max_reconnect_attempts == 7
        assert client.config.ping_interval_ms == 500
        assert client.connector.heartbeat.ping_interval_ms == 500
        assert client.connector.reconnect.config.max_attempts == 7
