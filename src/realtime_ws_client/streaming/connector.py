"""Opens channel transports and decides how to recover when they close."""

import asyncio
from collections.abc import Callable
from typing import Any, Optional

import orjson

from realtime_ws_client.auth.token_refresh import CredentialRefreshCoordinator
from realtime_ws_client.constants import CREDENTIAL_EXPIRED
from realtime_ws_client.exceptions import TransportException
from realtime_ws_client.streaming.heartbeat import HeartbeatTimer
from realtime_ws_client.streaming.reconnection import ReconnectionConfig, ReconnectScheduler
from realtime_ws_client.streaming.scheduler import Scheduler
from realtime_ws_client.streaming.state import ChannelKind, ConnectionState
from realtime_ws_client.streaming.transport import Data, Transport, TransportFactory
from realtime_ws_client.telemetry.logger import CredentialRedactor, channel_var, get_logger
from realtime_ws_client.telemetry.metrics import ConnectionMetrics

logger = get_logger(__name__)


def parse_message(data: Data) -> Any:
    """Decode a JSON frame, falling back to the raw payload."""
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError:
        return data


class ChannelConnector:
    """Owns the transport lifecycle of every channel.

    Events from a transport that is no longer the channel's current one
    are ignored.
    """

    def __init__(
        self,
        states: dict[ChannelKind, ConnectionState],
        transport_factory: TransportFactory,
        scheduler: Scheduler,
        target_for: Callable[[ChannelKind], str],
        reconnection: Optional[ReconnectionConfig] = None,
        ping_interval_ms: int = 30000,
        coordinator: Optional[CredentialRefreshCoordinator] = None,
        metrics: Optional[ConnectionMetrics] = None,
    ):
        self.states = states
        self.transport_factory = transport_factory
        self.target_for = target_for
        self.coordinator = coordinator
        self.metrics = metrics
        self._handler_tasks: set[asyncio.Task] = set()
        self.heartbeat = HeartbeatTimer(scheduler, ping_interval_ms, metrics)
        self.reconnect = ReconnectScheduler(scheduler, self.connect, reconnection, metrics)

    def connect(self, kind: ChannelKind, target: str) -> None:
        """Open a fresh transport for ``kind``, replacing any current one."""
        state = self.states[kind]

        self.reconnect.cancel(state)
        if state.transport is not None:
            previous, state.transport = state.transport, None
            self.heartbeat.stop(state)
            previous.close()
            if self.metrics:
                self.metrics.connected.labels(channel=kind.value).set(0)

        redacted = CredentialRedactor.redact(target)
        logger.info("channel_connecting", channel=kind.value, target=redacted)
        try:
            transport = self.transport_factory(target)
        except Exception as e:
            error = TransportException(
                f"Could not create transport: {CredentialRedactor.redact(str(e))}", url=redacted
            )
            logger.error(
                "transport_create_failed",
                channel=kind.value,
                error=error.message,
                error_code=error.error_code,
                details=error.details,
            )
            self.reconnect.schedule(state, target)
            return

        transport.on_open = lambda: self._on_open(state, transport)
        transport.on_message = lambda data: self._on_message(state, transport, data)
        transport.on_error = lambda exc: self._on_error(state, transport, exc)
        transport.on_close = lambda code, reason: self._on_close(state, transport, target, code, reason)
        state.transport = transport

        if self.metrics:
            self.metrics.connection_attempts.labels(channel=kind.value).inc()
        transport.open()

    def _on_open(self, state: ConnectionState, transport: Transport) -> None:
        if state.transport is not transport:
            return
        state.attempt = 0
        self.heartbeat.start(state)
        if self.metrics:
            self.metrics.connected.labels(channel=state.kind.value).set(1)
        logger.info("channel_opened", channel=state.kind.value)

    def _on_message(self, state: ConnectionState, transport: Transport, data: Data) -> None:
        if state.transport is not transport or state.handler is None:
            return

        message = parse_message(data)
        if message is data:
            logger.debug("message_not_json", channel=state.kind.value)
        if self.metrics:
            fmt = "raw" if message is data else "json"
            self.metrics.messages_received.labels(channel=state.kind.value, format=fmt).inc()

        # Handler tasks inherit the channel context
        context_token = channel_var.set(state.kind.value)
        try:
            result = state.handler(message)
            if asyncio.iscoroutine(result):
                task = asyncio.ensure_future(result)
                self._handler_tasks.add(task)
                task.add_done_callback(lambda t: self._handler_done(state, t))
        except Exception:
            logger.exception("message_handler_failed", channel=state.kind.value)
        finally:
            channel_var.reset(context_token)

    def _handler_done(self, state: ConnectionState, task: asyncio.Task) -> None:
        self._handler_tasks.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.error("message_handler_failed", channel=state.kind.value, error=str(exc))

    def _on_error(self, state: ConnectionState, transport: Transport, exc: BaseException) -> None:
        # Recovery is driven by the close event that follows
        if state.transport is transport:
            logger.warning("transport_error", channel=state.kind.value, error=str(exc))

    def _on_close(self, state: ConnectionState, transport: Transport, target: str, code: int, reason: str) -> None:
        if state.transport is not transport:
            return

        self.heartbeat.stop(state)
        state.transport = None
        if self.metrics:
            self.metrics.closes.labels(channel=state.kind.value, code=str(code)).inc()
            self.metrics.connected.labels(channel=state.kind.value).set(0)
        logger.info("channel_closed", channel=state.kind.value, code=code, reason=reason)

        if state.intentionally_closed:
            return

        if state.kind is ChannelKind.USER and code == CREDENTIAL_EXPIRED and self.coordinator is not None:
            state.refresh_task = asyncio.ensure_future(self._refresh_and_reconnect(state, target))
            return

        self.reconnect.schedule(state, target)

    async def _refresh_and_reconnect(self, state: ConnectionState, stale_target: str) -> None:
        try:
            await self.coordinator.refresh()
        except Exception as e:
            logger.warning("reconnect_with_stale_token", channel=state.kind.value, error=str(e))
            if state.transport is None:
                self.reconnect.schedule(state, stale_target)
            return

        if state.transport is not None:
            # An explicit connect won the race against the refresh
            return
        state.attempt = 0
        self.reconnect.schedule(state, self.target_for(state.kind), delay_override=0)
