"""Client for the broadcast and per-user realtime channels."""

import dataclasses
from typing import Optional, Union
from urllib.parse import urlencode

from realtime_ws_client.auth.token_refresh import (
    CredentialRefreshCoordinator,
    FailureListener,
    RefreshFunc,
    TokenListener,
    notify_listener,
)
from realtime_ws_client.config.settings import ClientConfig
from realtime_ws_client.constants import (
    BROADCAST_PATH,
    CLIENT_DISCONNECT_REASON,
    NORMAL_CLOSURE,
    TOKEN_QUERY_PARAM,
    USER_PATH,
)
from realtime_ws_client.streaming.connector import ChannelConnector
from realtime_ws_client.streaming.reconnection import ReconnectionConfig
from realtime_ws_client.streaming.scheduler import AsyncioScheduler, Scheduler
from realtime_ws_client.streaming.state import (
    ChannelKind,
    ConnectionState,
    ConnectionStatus,
    MessageHandler,
)
from realtime_ws_client.streaming.transport import TransportFactory, WebSocketTransport
from realtime_ws_client.telemetry.logger import get_logger
from realtime_ws_client.telemetry.metrics import ConnectionMetrics

logger = get_logger(__name__)

ChannelRef = Union[ChannelKind, str]


class RealtimeClient:
    """Maintains the broadcast and user channels.

    Callers register a handler per channel and read connectivity through
    :meth:`get_status`; reconnects, heartbeats and token refresh happen
    behind it. All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        token: str,
        refresh_func: Optional[RefreshFunc] = None,
        *,
        config: Optional[ClientConfig] = None,
        ws_base_url: Optional[str] = None,
        max_reconnect_attempts: Optional[int] = None,
        base_reconnect_interval_ms: Optional[int] = None,
        ping_interval_ms: Optional[int] = None,
        transport_factory: Optional[TransportFactory] = None,
        scheduler: Optional[Scheduler] = None,
        on_token_refreshed: Optional[TokenListener] = None,
        on_refresh_failed: Optional[FailureListener] = None,
        metrics: Optional[ConnectionMetrics] = None,
    ):
        """Initialize client.

        Args:
            token: Initial credential for the user channel
            refresh_func: Async callable returning a fresh credential; without
                it an expired credential is retried like any other close
            config: Base configuration, overridden by the keyword arguments
            transport_factory: Builds a transport for a target URL
            scheduler: Timer source
            on_token_refreshed: Observer of refreshed credentials
            on_refresh_failed: Observer of refresh failures (session expiry)
            metrics: Prometheus collectors
        """
        overrides = {
            "ws_base_url": ws_base_url,
            "max_reconnect_attempts": max_reconnect_attempts,
            "base_reconnect_interval_ms": base_reconnect_interval_ms,
            "ping_interval_ms": ping_interval_ms,
        }
        self.config = dataclasses.replace(
            config or ClientConfig(), **{k: v for k, v in overrides.items() if v is not None}
        )
        self.metrics = metrics or ConnectionMetrics()
        self._token = token
        self._on_token_refreshed = on_token_refreshed

        self.coordinator = (
            CredentialRefreshCoordinator(
                refresh_func,
                on_refreshed=self._store_refreshed_token,
                on_refresh_failed=on_refresh_failed,
                metrics=self.metrics,
            )
            if refresh_func is not None
            else None
        )

        self.states: dict[ChannelKind, ConnectionState] = {kind: ConnectionState(kind=kind) for kind in ChannelKind}
        self.connector = ChannelConnector(
            self.states,
            transport_factory or WebSocketTransport,
            scheduler or AsyncioScheduler(),
            self.target_for,
            reconnection=ReconnectionConfig(
                max_attempts=self.config.max_reconnect_attempts,
                base_interval_ms=self.config.base_reconnect_interval_ms,
                max_interval_ms=self.config.max_reconnect_interval_ms,
            ),
            ping_interval_ms=self.config.ping_interval_ms,
            coordinator=self.coordinator,
            metrics=self.metrics,
        )

    @property
    def token(self) -> str:
        return self._token

    def target_for(self, kind: ChannelKind) -> str:
        """Connection URL of a channel; the user URL embeds the current token."""
        base = self.config.ws_base_url.rstrip("/")
        if kind is ChannelKind.BROADCAST:
            return f"{base}{BROADCAST_PATH}"
        return f"{base}{USER_PATH}?{urlencode({TOKEN_QUERY_PARAM: self._token})}"

    def connect_broadcast(self, handler: MessageHandler) -> None:
        """Connect the public broadcast channel."""
        self._connect(ChannelKind.BROADCAST, handler)

    def connect_user(self, handler: MessageHandler) -> None:
        """Connect the authenticated per-user channel."""
        self._connect(ChannelKind.USER, handler)

    def _connect(self, kind: ChannelKind, handler: MessageHandler) -> None:
        state = self.states[kind]
        state.handler = handler
        state.intentionally_closed = False
        state.attempt = 0
        self.connector.connect(kind, self.target_for(kind))

    def update_token(self, token: str) -> None:
        """Replace the credential and reopen the user channel if it is active.

        The channel is active when it holds a transport or has a reconnect
        pending, and was not disconnected. A credential refresh already in
        flight takes precedence: its result replaces the token set here and
        is the one the user channel reconnects with.
        """
        self._token = token

        state = self.states[ChannelKind.USER]
        active = state.transport is not None or state.reconnect_pending
        if active and not state.intentionally_closed and state.handler is not None:
            logger.info("user_channel_token_updated", channel=ChannelKind.USER.value)
            handler = state.handler
            self.disconnect(ChannelKind.USER)
            self.connect_user(handler)

    def disconnect(self, kind: ChannelRef) -> None:
        """Close a channel and stop every automatic retry for it."""
        kind = ChannelKind(kind)
        state = self.states[kind]

        state.intentionally_closed = True
        self.connector.reconnect.cancel(state)
        self.connector.heartbeat.stop(state)

        if state.transport is not None:
            transport, state.transport = state.transport, None
            transport.close(NORMAL_CLOSURE, CLIENT_DISCONNECT_REASON)
            self.metrics.connected.labels(channel=kind.value).set(0)
            logger.info("channel_disconnected", channel=kind.value)

    def close(self) -> None:
        """Disconnect both channels."""
        for kind in ChannelKind:
            self.disconnect(kind)

    def get_status(self, kind: ChannelRef) -> ConnectionStatus:
        return self.states[ChannelKind(kind)].status

    def is_connected(self, kind: ChannelRef) -> bool:
        return self.get_status(kind) is ConnectionStatus.CONNECTED

    async def _store_refreshed_token(self, token: str) -> None:
        self._token = token
        await notify_listener(self._on_token_refreshed, token)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        self.close()
