"""Custom exceptions for the realtime WebSocket client."""

from typing import Any, Dict, Optional


class RealtimeClientException(Exception):
    """Base exception for the realtime client."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}


class TransportException(RealtimeClientException):
    """A transport could not be created for a connection target."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="TRANSPORT_ERROR", **kwargs)
        if url:
            self.details["url"] = url


class TokenRefreshException(RealtimeClientException):
    """Refreshing the user credential failed."""

    def __init__(self, message: str = "Token refresh failed", status_code: Optional[int] = None, **kwargs):
        super().__init__(message, error_code="TOKEN_REFRESH_FAILED", **kwargs)
        self.status_code = status_code
        if status_code is not None:
            self.details["status_code"] = status_code


__all__ = [
    "RealtimeClientException",
    "TransportException",
    "TokenRefreshException",
]
