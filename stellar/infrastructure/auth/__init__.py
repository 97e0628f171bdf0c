"""Authenticated app API access with single-flight credential refresh."""

from stellar.infrastructure.auth.client import AuthenticatedClient, is_auth_endpoint
from stellar.infrastructure.auth.refresh_gate import RefreshGate, RefreshState
from stellar.infrastructure.auth.token_store import (
    FileTokenStore,
    MemoryTokenStore,
    TokenPair,
    TokenStore,
)

__all__ = [
    "AuthenticatedClient",
    "FileTokenStore",
    "MemoryTokenStore",
    "RefreshGate",
    "RefreshState",
    "TokenPair",
    "TokenStore",
    "is_auth_endpoint",
]
