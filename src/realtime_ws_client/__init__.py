"""Auto-reconnecting client for broadcast and per-user realtime channels."""

__version__ = "1.0.0"


def get_version():
    return __version__


from realtime_ws_client.auth import CredentialRefreshCoordinator, HttpTokenRefresher
from realtime_ws_client.client import RealtimeClient
from realtime_ws_client.config import ClientConfig, Settings, get_settings
from realtime_ws_client.exceptions import (
    RealtimeClientException,
    TokenRefreshException,
    TransportException,
)
from realtime_ws_client.streaming import ChannelKind, ConnectionStatus

__all__ = [
    "__version__",
    "get_version",
    "RealtimeClient",
    "ChannelKind",
    "ConnectionStatus",
    "CredentialRefreshCoordinator",
    "HttpTokenRefresher",
    "ClientConfig",
    "Settings",
    "get_settings",
    "RealtimeClientException",
    "TokenRefreshException",
    "TransportException",
]
