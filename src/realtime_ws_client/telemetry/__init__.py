"""Telemetry module for logging and metrics."""

from realtime_ws_client.telemetry.logger import get_logger, setup_logging
from realtime_ws_client.telemetry.metrics import ConnectionMetrics

__all__ = ["get_logger", "setup_logging", "ConnectionMetrics"]
