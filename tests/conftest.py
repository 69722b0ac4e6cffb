"""Shared test fixtures for bub."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Optional

import pytest
import requests
from hvac import exceptions as hvac_exceptions

from bub.models import VaultConfig
from bub.tunnel import TunnelEndpoint
from bub.vault.models import Credential


class FakeVault:
    """In-memory secret store speaking just enough of the hvac client API.

    Tokens listed in ``valid_tokens`` are accepted; anything else gets a
    403. Logins check ``users`` and hand out ``issue`` tokens in order.
    """

    def __init__(self) -> None:
        self.valid_tokens: set[str] = set()
        self.users: dict[tuple[str, str], str] = {("okta", "alice"): "p"}
        self.issue: list[str] = []
        self.secrets: dict[str, dict[str, Any]] = {}
        self.write_response: Any = None
        self.down = False
        self.login_down = False
        self.deny_all = False
        self.login_calls: list[str] = []
        self.read_calls = 0
        self.write_calls = 0
        self.lookup_calls = 0
        self.clients: list[FakeClient] = []

    def client(self, url: Optional[str] = None, token: Optional[str] = None, **kwargs) -> "FakeClient":
        """Factory with the hvac.Client signature."""
        client = FakeClient(self, url, token, **kwargs)
        self.clients.append(client)
        return client

    def login(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        self.login_calls.append(path)
        if self.down or self.login_down:
            raise requests.exceptions.ConnectionError("connection refused")
        _, method, _, username = path.split("/")
        if self.users.get((method, username)) != data.get("password"):
            raise hvac_exceptions.InvalidRequest("invalid username or password")
        token = self.issue.pop(0) if self.issue else f"tok-{len(self.login_calls)}"
        if not token:
            return {"auth": None}
        if not self.deny_all:
            self.valid_tokens.add(token)
        return {"auth": {"client_token": token, "policies": ["default"]}}


class FakeClient:
    """Stands in for hvac.Client against a FakeVault."""

    def __init__(self, server: FakeVault, url: Optional[str], token: Optional[str] = None, **kwargs) -> None:
        self.server = server
        self.url = url
        self.token = token
        self.kwargs = kwargs
        self.auth = SimpleNamespace(token=SimpleNamespace(lookup_self=self._lookup_self))

    def _check(self) -> None:
        if self.server.down:
            raise requests.exceptions.ConnectionError("connection refused")
        if self.server.deny_all or self.token not in self.server.valid_tokens:
            raise hvac_exceptions.Forbidden("permission denied")

    def _lookup_self(self) -> dict[str, Any]:
        self.server.lookup_calls += 1
        self._check()
        return {"data": {"display_name": "okta-alice", "policies": ["default"], "ttl": 3600}}

    def read(self, path: str) -> Optional[dict[str, Any]]:
        self.server.read_calls += 1
        self._check()
        if path not in self.server.secrets:
            return None
        return {"data": dict(self.server.secrets[path]), "lease_duration": 2764800}

    def write_data(self, path: str, *, data: Optional[dict[str, Any]] = None, wrap_ttl=None) -> Any:
        if path.startswith("auth/"):
            return self.server.login(path, data or {})
        self.server.write_calls += 1
        self._check()
        self.server.secrets[path] = dict(data or {})
        return self.server.write_response


@pytest.fixture
def fake_vault() -> FakeVault:
    """A fresh in-memory secret store."""
    return FakeVault()


@pytest.fixture
def config_home(tmp_path: Path) -> Path:
    """Provide a temporary bub configuration directory."""
    home = tmp_path / ".config" / "bub"
    home.mkdir(parents=True)
    return home


@pytest.fixture
def vault_config() -> VaultConfig:
    return VaultConfig(server="https://localhost", auth_method="Okta")


@pytest.fixture
def tunnel() -> TunnelEndpoint:
    return TunnelEndpoint(remote_host="vault.stg", local_port=18200)


@pytest.fixture
def alice() -> Credential:
    return Credential(auth_method="Okta", username="alice", password="p")


@pytest.fixture(autouse=True)
def _no_credential_env(monkeypatch):
    """Keep the developer's own environment out of credential lookups."""
    for name in (
        "BUB_UPDATE_CREDENTIALS",
        "VAULT_OKTA_USERNAME",
        "VAULT_OKTA_PASSWORD",
        "BUB_VAULT_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
