"""
Error taxonomy for the secret-store client.

Every failure surfaces as a SecretStoreError subclass tagged with an
ErrorKind. The hvac or requests exception that caused it is kept as
``__cause__`` so the original detail survives for diagnostics.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import requests
from hvac import exceptions as hvac_exceptions

from .models import ErrorKind

UPDATE_CREDENTIALS_ENV = "BUB_UPDATE_CREDENTIALS"


class SecretStoreError(Exception):
    """Base class for secret-store failures."""

    kind: ErrorKind = ErrorKind.OTHER


class ConnectivityError(SecretStoreError):
    """Transport unreachable, timed out, or the server is down."""

    kind = ErrorKind.CONNECTIVITY


class AuthenticationError(SecretStoreError):
    """Login produced no usable token or the credential was rejected."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint


class AuthorizationError(SecretStoreError):
    """The store denied the current token."""

    kind = ErrorKind.AUTHORIZATION


class NotFoundError(SecretStoreError):
    """Nothing stored at the requested path."""

    kind = ErrorKind.NOT_FOUND


class RequestError(SecretStoreError):
    """The store rejected the request itself (bad payload, bad path)."""

    kind = ErrorKind.REQUEST


class PersistenceError(SecretStoreError):
    """The token cache could not be written."""

    kind = ErrorKind.PERSISTENCE


_ERRORS_BY_KIND: dict[ErrorKind, type[SecretStoreError]] = {
    ErrorKind.CONNECTIVITY: ConnectivityError,
    ErrorKind.AUTHORIZATION: AuthorizationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.REQUEST: RequestError,
    ErrorKind.PERSISTENCE: PersistenceError,
}


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised by hvac or requests to an ErrorKind.

    Args:
        exc: The exception to classify.

    Returns:
        ErrorKind for the failure. Only AUTHORIZATION triggers
        re-authentication.
    """
    if isinstance(exc, SecretStoreError):
        return exc.kind
    if isinstance(exc, (hvac_exceptions.Forbidden, hvac_exceptions.Unauthorized)):
        return ErrorKind.AUTHORIZATION
    if isinstance(exc, hvac_exceptions.InvalidPath):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, hvac_exceptions.InvalidRequest):
        return ErrorKind.REQUEST
    if isinstance(
        exc,
        (
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            hvac_exceptions.VaultDown,
            hvac_exceptions.BadGateway,
        ),
    ):
        return ErrorKind.CONNECTIVITY
    if isinstance(exc, OSError):
        return ErrorKind.CONNECTIVITY
    return ErrorKind.OTHER


def wrap_error(exc: BaseException, message: str) -> SecretStoreError:
    """Build the typed error for ``exc``; the caller raises it ``from exc``."""
    if isinstance(exc, SecretStoreError):
        return exc
    error_cls = _ERRORS_BY_KIND.get(classify_error(exc), SecretStoreError)
    return error_cls(f"{message}: {exc}")


def reset_credentials_hint(command: Optional[str] = None) -> str:
    """Guidance shown when a login fails; defaults to the current command line."""
    if command is None:
        command = " ".join([Path(sys.argv[0]).name] + sys.argv[1:])
    return f"Run '{UPDATE_CREDENTIALS_ENV}=1 {command}' to change your credentials."
