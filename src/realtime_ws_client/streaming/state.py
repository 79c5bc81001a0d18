"""Per-channel connection state."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from realtime_ws_client.streaming.scheduler import TimerHandle
from realtime_ws_client.streaming.transport import ReadyState, Transport

MessageHandler = Callable[[Any], Any]


class ChannelKind(Enum):
    """The two independent streams the client maintains."""

    BROADCAST = "broadcast"
    USER = "user"


class ConnectionStatus(Enum):
    """Connectivity as seen by callers."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class ConnectionState:
    """Lifecycle record of one channel.

    At any instant the channel either holds a transport, has a reconnect
    timer pending, or has neither (intentionally closed or out of
    attempts).
    """

    kind: ChannelKind
    transport: Optional[Transport] = None
    attempt: int = 0
    reconnect_timer: Optional[TimerHandle] = None
    heartbeat_timer: Optional[TimerHandle] = None
    intentionally_closed: bool = False
    handler: Optional[MessageHandler] = None
    refresh_task: Optional[asyncio.Task] = None

    @property
    def status(self) -> ConnectionStatus:
        if self.transport is None:
            return ConnectionStatus.DISCONNECTED
        if self.transport.ready_state is ReadyState.CONNECTING:
            return ConnectionStatus.CONNECTING
        if self.transport.ready_state is ReadyState.OPEN:
            return ConnectionStatus.CONNECTED
        return ConnectionStatus.DISCONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self.reconnect_timer is not None
