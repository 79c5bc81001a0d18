"""Credential refresh for the authenticated channel."""

from .token_refresh import CredentialRefreshCoordinator, HttpTokenRefresher

__all__ = ["CredentialRefreshCoordinator", "HttpTokenRefresher"]
