"""
Secret-store access -- cached session tokens, login, and reads/writes
that survive a token expiring between runs.
"""

from .auth import AuthenticationFlow
from .client import SecretClient
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConnectivityError,
    NotFoundError,
    PersistenceError,
    RequestError,
    SecretStoreError,
)
from .models import ClientSession, Credential, Secret, SessionState, SessionToken
from .token_store import TokenStore

__all__ = [
    "AuthenticationFlow",
    "SecretClient",
    "TokenStore",
    "ClientSession",
    "Credential",
    "Secret",
    "SessionState",
    "SessionToken",
    "SecretStoreError",
    "AuthenticationError",
    "AuthorizationError",
    "ConnectivityError",
    "NotFoundError",
    "PersistenceError",
    "RequestError",
]
