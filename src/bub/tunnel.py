"""
Tunnel endpoint description.

Establishing the tunnel is left to an external collaborator (an ssh
port-forward through the environment's jumphost). This module only
describes what the tunnel must look like for the secret store and
which local port it listens on.
"""

from __future__ import annotations

import socket

from pydantic import BaseModel, Field

from .models import Environment

VAULT_REMOTE_PORT = 8200


class TunnelEndpoint(BaseModel):
    """A local port forwarding to a remote host."""

    remote_host: str = Field(min_length=1)
    remote_port: int = VAULT_REMOTE_PORT
    local_port: int = Field(gt=0, lt=65536)

    @property
    def host_identity(self) -> str:
        """Stable name used to namespace cached tokens."""
        return self.remote_host.lower()


def get_free_port() -> int:
    """Ask the OS for an unused local TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def vault_tunnel(env: Environment, local_port: int = 0) -> TunnelEndpoint:
    """Describe the tunnel to the secret store of an environment.

    Args:
        env: Environment whose domain hosts the store.
        local_port: Port of an existing tunnel; 0 picks a free one.

    Returns:
        TunnelEndpoint targeting vault.<domain>:8200.
    """
    if not env.domain:
        raise ValueError(f"Environment '{env.prefix or '*'}' has no domain configured")
    return TunnelEndpoint(
        remote_host=f"vault.{env.domain}",
        remote_port=VAULT_REMOTE_PORT,
        local_port=local_port or get_free_port(),
    )
