"""Reconnection scheduling with exponential backoff."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from realtime_ws_client.streaming.scheduler import Scheduler
from realtime_ws_client.streaming.state import ChannelKind, ConnectionState
from realtime_ws_client.telemetry.logger import get_logger
from realtime_ws_client.telemetry.metrics import ConnectionMetrics

logger = get_logger(__name__)


@dataclass
class ReconnectionConfig:
    """Configuration for reconnection logic."""

    max_attempts: int = 10
    base_interval_ms: int = 1000
    max_interval_ms: int = 30000  # ceiling, not a limit on attempts


class ReconnectScheduler:
    """Schedules the next connection attempt of a channel."""

    def __init__(
        self,
        scheduler: Scheduler,
        connect: Callable[[ChannelKind, str], None],
        config: Optional[ReconnectionConfig] = None,
        metrics: Optional[ConnectionMetrics] = None,
    ):
        """Initialize reconnect scheduler.

        Args:
            scheduler: Timer source
            connect: Called with (kind, target) when a retry fires
            config: Backoff configuration
            metrics: Optional metrics sink
        """
        self.scheduler = scheduler
        self.connect = connect
        self.config = config or ReconnectionConfig()
        self.metrics = metrics

    def calculate_delay(self, attempt: int) -> int:
        """Delay in milliseconds before the given 1-based attempt."""
        return min(
            self.config.base_interval_ms * 2 ** (attempt - 1),
            self.config.max_interval_ms,
        )

    def schedule(self, state: ConnectionState, target: str, delay_override: Optional[int] = None) -> bool:
        """Schedule a retry of ``state``'s channel.

        Returns:
            True if a retry was scheduled
        """
        if state.intentionally_closed:
            return False

        if state.attempt >= self.config.max_attempts:
            logger.error(
                "reconnect_attempts_exhausted",
                channel=state.kind.value,
                max_attempts=self.config.max_attempts,
            )
            return False

        state.attempt += 1
        delay = delay_override if delay_override is not None else self.calculate_delay(state.attempt)

        logger.info(
            "reconnect_scheduled",
            channel=state.kind.value,
            attempt=state.attempt,
            max_attempts=self.config.max_attempts,
            delay_ms=delay,
        )

        self.cancel(state)
        state.reconnect_timer = self.scheduler.schedule_once(delay / 1000, lambda: self._fire(state, target))
        if self.metrics:
            self.metrics.reconnects_scheduled.labels(channel=state.kind.value).inc()
        return True

    def cancel(self, state: ConnectionState) -> None:
        if state.reconnect_timer is not None:
            self.scheduler.cancel(state.reconnect_timer)
            state.reconnect_timer = None

    def _fire(self, state: ConnectionState, target: str) -> None:
        state.reconnect_timer = None
        if state.intentionally_closed:
            return
        self.connect(state.kind, target)
