"""Application-level liveness pings over an open transport."""

from typing import Optional

import orjson

from realtime_ws_client.constants import PING_MESSAGE
from realtime_ws_client.streaming.scheduler import Scheduler
from realtime_ws_client.streaming.state import ConnectionState
from realtime_ws_client.telemetry.logger import get_logger
from realtime_ws_client.telemetry.metrics import ConnectionMetrics

logger = get_logger(__name__)

PING_FRAME = orjson.dumps(PING_MESSAGE).decode()


class HeartbeatTimer:
    """Sends ``{"type": "ping"}`` every ``ping_interval_ms`` while a channel is open."""

    def __init__(self, scheduler: Scheduler, ping_interval_ms: int, metrics: Optional[ConnectionMetrics] = None):
        self.scheduler = scheduler
        self.ping_interval_ms = ping_interval_ms
        self.metrics = metrics

    def start(self, state: ConnectionState) -> None:
        """Replace any running heartbeat of the channel with a fresh one."""
        self.stop(state)
        state.heartbeat_timer = self.scheduler.schedule_repeating(
            self.ping_interval_ms / 1000, lambda: self._beat(state)
        )

    def stop(self, state: ConnectionState) -> None:
        if state.heartbeat_timer is not None:
            self.scheduler.cancel(state.heartbeat_timer)
            state.heartbeat_timer = None

    def _beat(self, state: ConnectionState) -> None:
        transport = state.transport
        if transport is None or not transport.is_open:
            # Lost the race against a close
            logger.debug("heartbeat_skipped", channel=state.kind.value)
            return
        transport.send(PING_FRAME)
        if self.metrics:
            self.metrics.heartbeats_sent.labels(channel=state.kind.value).inc()
