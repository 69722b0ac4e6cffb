"""
Session token cache.

One plain-text file per secret-store host, so tokens for different
endpoints never overwrite each other:

    ~/.config/bub/
    ├── config.yml
    ├── token.vault.staging.example.com
    └── token.vault.example.com

Files are written owner-only (0600). The cache is not locked; two
processes saving at once race and the last writer wins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .errors import PersistenceError
from .models import SessionToken

logger = logging.getLogger("bub.vault.token_store")

TOKEN_PREFIX = "token."
FILE_MODE = 0o600
DIR_MODE = 0o700


class TokenStore:
    """Reads and writes cached session tokens under a config directory."""

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = Path(config_dir).expanduser()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def path_for(self, host_identity: str) -> Path:
        """Cache file for a host identity."""
        if not host_identity or "/" in host_identity or host_identity in (".", ".."):
            raise ValueError(f"Invalid host identity: {host_identity!r}")
        return self._config_dir / f"{TOKEN_PREFIX}{host_identity}"

    def load(self, host_identity: str) -> Optional[SessionToken]:
        """Load the cached token for a host.

        Args:
            host_identity: Host the token was issued for.

        Returns:
            The cached SessionToken, or None when nothing usable is cached.
        """
        token_file = self.path_for(host_identity)
        if not token_file.exists():
            return None
        try:
            value = token_file.read_text().rstrip("\r\n")
        except OSError as exc:
            logger.warning("Failed to read cached token %s: %s", token_file, exc)
            return None
        if not value:
            return None
        return SessionToken(value=value, owner_host_identity=host_identity)

    def save(self, token: SessionToken) -> Path:
        """Persist a token, replacing any previous one for the same host.

        Args:
            token: Token to cache.

        Returns:
            Path of the cache file.

        Raises:
            ValueError: If the token value is empty.
            PersistenceError: If the file cannot be written.
        """
        if not token.value:
            raise ValueError("Refusing to cache an empty token")
        token_file = self.path_for(token.owner_host_identity)
        try:
            self._config_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            fd = os.open(token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "w") as fh:
                fh.write(token.value)
            # O_CREAT ignores the mode for a file that already exists
            os.chmod(token_file, FILE_MODE)
        except OSError as exc:
            raise PersistenceError(f"Failed to write token cache {token_file}: {exc}") from exc
        logger.debug("Cached token for %s in %s", token.owner_host_identity, token_file)
        return token_file

    def clear(self, host_identity: str) -> bool:
        """Delete the cached token for a host.

        Returns:
            True if a cache file was removed.
        """
        token_file = self.path_for(host_identity)
        if not token_file.exists():
            return False
        token_file.unlink()
        logger.info("Removed cached token %s", token_file)
        return True
