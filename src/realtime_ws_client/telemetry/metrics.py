"""Connection metrics with Prometheus integration."""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class ConnectionMetrics:
    """Prometheus collectors for one client.

    Each instance owns its registry so several clients can live in one
    process without duplicate-registration errors.
    """

    def __init__(self, namespace: str = "realtime_ws_client", registry: Optional[CollectorRegistry] = None):
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()

        self.connection_attempts = Counter(
            f"{namespace}_connection_attempts_total",
            "Transports opened per channel",
            ["channel"],
            registry=self.registry,
        )
        self.closes = Counter(
            f"{namespace}_closes_total",
            "Transport closes per channel and close code",
            ["channel", "code"],
            registry=self.registry,
        )
        self.reconnects_scheduled = Counter(
            f"{namespace}_reconnects_scheduled_total",
            "Reconnect attempts scheduled per channel",
            ["channel"],
            registry=self.registry,
        )
        self.messages_received = Counter(
            f"{namespace}_messages_received_total",
            "Inbound frames delivered to handlers",
            ["channel", "format"],
            registry=self.registry,
        )
        self.heartbeats_sent = Counter(
            f"{namespace}_heartbeats_sent_total",
            "Liveness frames sent",
            ["channel"],
            registry=self.registry,
        )
        self.token_refreshes = Counter(
            f"{namespace}_token_refreshes_total",
            "Upstream token refresh calls by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.connected = Gauge(
            f"{namespace}_connected",
            "1 while the channel transport is open",
            ["channel"],
            registry=self.registry,
        )

    def value(self, name: str, labels: Optional[dict] = None) -> float:
        """Read a sample value; 0.0 when it was never recorded."""
        sample = self.registry.get_sample_value(name, labels or {})
        return sample if sample is not None else 0.0

    def render(self) -> bytes:
        """Prometheus exposition text for this client."""
        return generate_latest(self.registry)
