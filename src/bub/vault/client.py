"""
Secret-store session client.

Uses the cached token optimistically. A failed call is followed by a
token self-lookup: if the store denies the token, the client logs in
again, swaps the token and retries. Anything else just consumes one of
the bounded attempts. A valid cached token costs one round trip.

Usage:
    client = SecretClient(cfg.vault, tunnel, credentials=provider)
    secret = client.read("secret/db")
    client.write("secret/db", {"password": "hunter2"})
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

import hvac
import requests
from hvac import exceptions as hvac_exceptions

from .. import BUB_HOME
from ..models import VaultConfig
from ..tunnel import TunnelEndpoint
from .auth import AuthenticationFlow
from .errors import (
    AuthenticationError,
    ConnectivityError,
    NotFoundError,
    SecretStoreError,
    classify_error,
    wrap_error,
)
from .models import ClientSession, Credential, ErrorKind, Secret, SessionState, SessionToken
from .token_store import TokenStore

logger = logging.getLogger("bub.vault.client")

DEFAULT_RETRIES = 2

T = TypeVar("T")


class SecretClient:
    """Reads and writes secrets, re-authenticating when the token is denied.

    Args:
        vault_config: Server, auth method and transport settings.
        tunnel: Established tunnel to the store's remote host.
        credentials: Returns a Credential; only called when a login is needed.
        token_store: Token cache. Defaults to one under $BUB_HOME.
        auth_flow: Login exchange. Defaults to one sharing token_store.
        client_factory: Builds the HTTP client (hvac.Client signature).
        retries: Attempts allowed after the first one.
    """

    def __init__(
        self,
        vault_config: VaultConfig,
        tunnel: TunnelEndpoint,
        credentials: Callable[[], Credential],
        token_store: Optional[TokenStore] = None,
        auth_flow: Optional[AuthenticationFlow] = None,
        client_factory: Optional[Callable[..., Any]] = None,
        retries: int = DEFAULT_RETRIES,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")
        client_factory = client_factory or hvac.Client
        self._credentials = credentials
        self._retries = retries
        self._token_store = token_store or TokenStore(BUB_HOME)
        self._auth_flow = auth_flow or AuthenticationFlow(
            self._token_store,
            client_factory=client_factory,
            verify=vault_config.verify,
            timeout=vault_config.timeout,
        )
        self.session = ClientSession(
            base_address=f"{vault_config.server.rstrip('/')}:{tunnel.local_port}",
            host_identity=tunnel.host_identity,
            auth_method=vault_config.auth_method,
        )
        self._client = client_factory(
            url=self.session.base_address,
            verify=vault_config.verify,
            timeout=vault_config.timeout,
        )

        cached = self._token_store.load(self.session.host_identity)
        if cached:
            logger.debug("Using cached token for %s", self.session.host_identity)
            self._set_token(cached)
        else:
            self._authenticate(SessionState.AUTHENTICATING)

    @property
    def address(self) -> str:
        return self.session.base_address

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def token(self) -> Optional[SessionToken]:
        return self.session.token

    def read(self, path: str) -> Secret:
        """Read the secret stored at ``path``.

        Raises:
            NotFoundError: Nothing is stored at the path.
            SecretStoreError: Any other failure, after the retry budget.
        """
        logger.info("Reading from '%s' on '%s'", path, self.address)

        def _read() -> Secret:
            response = self._call(f"read {path}", lambda: self._client.read(path))
            if response is None:
                raise NotFoundError(f"No secret found at '{path}'")
            return Secret.from_response(path, response)

        return self._with_reauth(_read)

    def write(self, path: str, data: dict[str, Any]) -> Secret:
        """Write ``data`` to ``path``.

        Returns:
            The server's acknowledgement, possibly empty.
        """
        logger.info("Writing to '%s' on '%s'", path, self.address)

        def _write() -> Secret:
            response = self._call(
                f"write {path}", lambda: self._client.write_data(path, data=data)
            )
            return Secret.from_response(path, response)

        return self._with_reauth(_write)

    def lookup_self(self) -> dict[str, Any]:
        """Introspect the current token."""
        self._require_token()
        return self._call("token lookup", self._client.auth.token.lookup_self)

    # --- Private helpers ---

    def _with_reauth(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` with at most 1 + retries attempts."""
        self._require_token()
        retries = self._retries
        while True:
            try:
                return operation()
            except SecretStoreError as exc:
                if retries <= 0:
                    raise
                retries -= 1
                logger.debug("%s (%d retries left)", exc, retries)
                if self._token_denied():
                    try:
                        self._authenticate(SessionState.REAUTHENTICATING)
                    except ConnectivityError as auth_exc:
                        logger.warning("Could not renew token: %s", auth_exc)

    def _token_denied(self) -> bool:
        """Check whether the store rejects the current token itself."""
        try:
            self._client.auth.token.lookup_self()
        except (hvac_exceptions.VaultError, requests.exceptions.RequestException) as exc:
            return classify_error(exc) == ErrorKind.AUTHORIZATION
        return False

    def _authenticate(self, state: SessionState) -> None:
        if state == SessionState.REAUTHENTICATING:
            logger.info("Trying to renew token...")
        self.session.state = state
        try:
            credential = self._credentials()
            token = self._auth_flow.authenticate(
                credential,
                self.session.base_address,
                host_identity=self.session.host_identity,
            )
        except ConnectivityError:
            # the current token, if any, is still usable once the store is back
            self.session.state = (
                SessionState.READY if self.session.token else SessionState.FAILED
            )
            raise
        except Exception:
            self.session.state = SessionState.FAILED
            raise
        self._set_token(token)

    def _set_token(self, token: SessionToken) -> None:
        self.session.token = token
        self._client.token = token.value
        self.session.state = SessionState.READY

    def _require_token(self) -> None:
        if self.session.state == SessionState.FAILED:
            raise AuthenticationError(
                f"Session for {self.session.host_identity} failed to authenticate"
            )
        if self.session.token is None:
            raise AuthenticationError("No session token; authenticate first")

    def _call(self, description: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except (hvac_exceptions.VaultError, requests.exceptions.RequestException) as exc:
            raise wrap_error(exc, f"Failed to {description} on '{self.address}'") from exc
