"""
Pydantic models for the bub configuration file.

Mirrors the layout of ~/.config/bub/config.yml. Unknown sections are
ignored so the file can carry settings for integrations that are not
loaded in this process.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AUTH_METHOD = "Okta"


class Environment(BaseModel):
    """A deployment environment reachable through a jumphost."""

    prefix: str = ""
    jumphost: str = ""
    region: str = ""
    domain: str = ""

    def matches(self, name: str) -> bool:
        """Check whether an environment name selects this entry.

        An entry without a prefix is a catch-all.
        """
        if not self.prefix:
            return True
        return name.startswith(self.prefix)


class VaultConfig(BaseModel):
    """Where the secret store is reached and how to log into it."""

    server: str = Field(
        default="https://localhost",
        description="Scheme and host of the local tunnel end, without port",
    )
    auth_method: str = Field(default=DEFAULT_AUTH_METHOD, alias="authMethod")
    username: Optional[str] = None
    verify: Union[bool, str] = Field(
        default=True,
        description="TLS verification flag or CA bundle path",
    )
    timeout: int = Field(default=30, description="Transport timeout in seconds")

    model_config = ConfigDict(populate_by_name=True)


class SshConfig(BaseModel):
    """Settings for the tunnel collaborator."""

    connect_timeout: int = Field(default=3, alias="connectTimeout")

    model_config = ConfigDict(populate_by_name=True)


class Configuration(BaseModel):
    """Top-level bub configuration."""

    vault: VaultConfig = Field(default_factory=VaultConfig)
    environments: list[Environment] = Field(default_factory=list)
    ssh: SshConfig = Field(default_factory=SshConfig)

    model_config = ConfigDict(extra="ignore")

    def find_environment(self, name: str) -> Optional[Environment]:
        """Return the first environment whose prefix matches ``name``."""
        return next((env for env in self.environments if env.matches(name)), None)
