"""
Secret-store data models — credentials, tokens, sessions and secrets.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Lifecycle of a SecretClient's session."""

    NO_TOKEN = "no_token"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    REAUTHENTICATING = "reauthenticating"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """What went wrong talking to the secret store."""

    AUTHORIZATION = "authorization"
    AUTHENTICATION = "authentication"
    CONNECTIVITY = "connectivity"
    NOT_FOUND = "not_found"
    REQUEST = "request"
    PERSISTENCE = "persistence"
    OTHER = "other"


class Credential(BaseModel):
    """Username/password pair for one login attempt. Never persisted."""

    auth_method: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(repr=False)

    @property
    def login_path(self) -> str:
        """Login path; method and username are part of the URL."""
        return f"auth/{self.auth_method}/login/{self.username}".lower()


class SessionToken(BaseModel):
    """A session token and the secret-store host it belongs to."""

    value: str = Field(min_length=1, repr=False)
    owner_host_identity: str = Field(min_length=1)

    @property
    def masked(self) -> str:
        """Printable form that does not leak the token."""
        if len(self.value) <= 8:
            return "*" * len(self.value)
        return f"{self.value[:4]}…{self.value[-4:]}"


class ClientSession(BaseModel):
    """Connection state owned by a single SecretClient."""

    base_address: str = Field(min_length=1)
    host_identity: str = Field(min_length=1)
    auth_method: str
    token: Optional[SessionToken] = None
    state: SessionState = SessionState.NO_TOKEN


class Secret(BaseModel):
    """A secret read from, or acknowledgement returned by, the store."""

    path: str
    data: dict[str, Any] = Field(default_factory=dict)
    lease_duration: int = 0
    renewable: bool = False
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_response(cls, path: str, response: Any) -> "Secret":
        """Build a Secret from a raw API response.

        Responses without a JSON body (204 No Content) produce an
        empty secret.
        """
        if not isinstance(response, dict):
            return cls(path=path)
        return cls(
            path=path,
            data=response.get("data") or {},
            lease_duration=response.get("lease_duration") or 0,
            renewable=bool(response.get("renewable")),
            warnings=response.get("warnings") or [],
        )
