"""Streaming components for the realtime channels."""

from .connector import ChannelConnector, parse_message
from .heartbeat import PING_FRAME, HeartbeatTimer
from .reconnection import ReconnectionConfig, ReconnectScheduler
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle
from .state import ChannelKind, ConnectionState, ConnectionStatus
from .transport import ReadyState, Transport, TransportFactory, WebSocketTransport

__all__ = [
    "ChannelConnector",
    "parse_message",
    "HeartbeatTimer",
    "PING_FRAME",
    "ReconnectScheduler",
    "ReconnectionConfig",
    "Scheduler",
    "AsyncioScheduler",
    "TimerHandle",
    "ChannelKind",
    "ConnectionState",
    "ConnectionStatus",
    "ReadyState",
    "Transport",
    "TransportFactory",
    "WebSocketTransport",
]
