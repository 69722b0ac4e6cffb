"""
Username/password login against the secret store.

A single exchange: POST the password to auth/<method>/login/<username>,
pull the client token out of the response, cache it. Retrying is the
caller's business; nothing here loops.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union
from urllib.parse import urlsplit

import hvac
import requests
from hvac import exceptions as hvac_exceptions

from .errors import (
    AuthenticationError,
    ConnectivityError,
    PersistenceError,
    classify_error,
    reset_credentials_hint,
)
from .models import Credential, ErrorKind, SessionToken
from .token_store import TokenStore

logger = logging.getLogger("bub.vault.auth")


def host_identity_from_address(address: str) -> str:
    """Derive the cache key from an address such as https://vault.stg:8200."""
    host = urlsplit(address if "//" in address else f"//{address}").hostname
    if not host:
        raise ValueError(f"Cannot derive a host from address {address!r}")
    return host.lower()


def extract_token(response: Any) -> str:
    """Pull the client token out of a login response.

    Returns:
        The token, or an empty string if the response carries none.
    """
    if not isinstance(response, dict):
        return ""
    auth = response.get("auth") or {}
    if not isinstance(auth, dict):
        return ""
    token = auth.get("client_token") or ""
    return token if isinstance(token, str) else ""


class AuthenticationFlow:
    """Exchanges a Credential for a fresh SessionToken.

    Args:
        token_store: Where new tokens are cached.
        client_factory: Builds the HTTP client (hvac.Client signature).
        verify: TLS verification flag or CA bundle path.
        timeout: Transport timeout in seconds.
    """

    def __init__(
        self,
        token_store: TokenStore,
        client_factory: Optional[Callable[..., Any]] = None,
        verify: Union[bool, str] = True,
        timeout: int = 30,
    ) -> None:
        self._token_store = token_store
        self._client_factory = client_factory or hvac.Client
        self._verify = verify
        self._timeout = timeout

    def authenticate(
        self,
        credential: Credential,
        login_address: str,
        host_identity: Optional[str] = None,
    ) -> SessionToken:
        """Log in once and cache the resulting token.

        Args:
            credential: Method, username and password to log in with.
            login_address: Base address of the store (the tunnel end).
            host_identity: Cache key; derived from login_address if omitted.

        Returns:
            The new SessionToken.

        Raises:
            ConnectivityError: The store could not be reached.
            AuthenticationError: The login was refused or yielded no token.
        """
        owner = host_identity or host_identity_from_address(login_address)
        path = credential.login_path
        client = self._client_factory(url=login_address, verify=self._verify, timeout=self._timeout)

        logger.info("Authenticating %s on '%s'", credential.username, login_address)
        try:
            response = client.write_data(path, data={"password": credential.password})
        except (hvac_exceptions.VaultError, requests.exceptions.RequestException) as exc:
            if classify_error(exc) == ErrorKind.CONNECTIVITY:
                raise ConnectivityError(
                    f"Could not reach the secret store at {login_address}: {exc}"
                ) from exc
            raise self._failure(f"Login to {login_address} was refused: {exc}") from exc

        value = extract_token(response)
        if not value:
            raise self._failure(f"Login to {login_address} returned no token")

        token = SessionToken(value=value, owner_host_identity=owner)
        try:
            self._token_store.save(token)
        except PersistenceError as exc:
            logger.warning("%s — the token will not be reused next run", exc)
        return token

    def _failure(self, message: str) -> AuthenticationError:
        hint = reset_credentials_hint()
        logger.error("Authentication Failure.")
        logger.error(hint)
        return AuthenticationError(message, hint=hint)
