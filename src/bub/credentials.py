"""
Username/password resolution for services that need a login.

Each item (e.g. "Vault/Okta Username") is looked up in order:

    1. $VAULT_OKTA_USERNAME (item upper-cased, spaces and slashes -> _)
    2. a value already present in config.yml
    3. the OS keyring, service "bub"
    4. an interactive prompt, whose answer is saved to the keyring

Setting BUB_UPDATE_CREDENTIALS=1 skips straight to the prompt so a
changed password can be stored.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Callable, Optional

import click
import keyring
from keyring.errors import KeyringError

from .models import VaultConfig
from .vault.errors import UPDATE_CREDENTIALS_ENV
from .vault.models import Credential

logger = logging.getLogger("bub.credentials")

KEYRING_SERVICE = "bub"
OPTIONAL_PREFIX = "<optional-"

Prompt = Callable[[str, bool], str]


class CredentialError(Exception):
    """Raised when a credential item cannot be resolved or stored."""


def reset_requested() -> bool:
    """Whether the user asked to re-enter stored credentials."""
    return os.environ.get(UPDATE_CREDENTIALS_ENV, "").strip().lower() in ("1", "true", "yes")


def env_var_name(item: str) -> str:
    """Environment variable for an item: 'Vault/Okta Username' -> VAULT_OKTA_USERNAME."""
    return re.sub(r"[\s/]+", "_", item.strip()).upper()


def _click_prompt(label: str, hide_input: bool) -> str:
    return click.prompt(f"Enter {label}", hide_input=hide_input)


def _is_secret_item(item: str) -> bool:
    return item.lower().endswith("password")


def set_keyring_item(item: str, prompt: Prompt = _click_prompt) -> str:
    """Prompt for an item and store the answer in the keyring."""
    value = prompt(item, _is_secret_item(item))
    try:
        keyring.set_password(KEYRING_SERVICE, item, value)
    except KeyringError as exc:
        raise CredentialError(f"Failed to store '{item}' in the keyring: {exc}") from exc
    return value


def load_credential_item(
    item: str,
    current: Optional[str] = None,
    reset: bool = False,
    prompt: Prompt = _click_prompt,
) -> str:
    """Resolve a single credential item.

    Args:
        item: Keyring item name, e.g. 'Vault/Okta Password'.
        current: Value from the configuration file, if any.
        reset: Ignore stored values and prompt again.
        prompt: Interactive input function (label, hide_input).

    Returns:
        The resolved value.

    Raises:
        CredentialError: If the keyring cannot be used.
    """
    if reset:
        return set_keyring_item(item, prompt)

    from_env = os.environ.get(env_var_name(item))
    if from_env:
        return from_env

    if current and not current.startswith(OPTIONAL_PREFIX):
        return current

    try:
        stored = keyring.get_password(KEYRING_SERVICE, item)
    except KeyringError as exc:
        raise CredentialError(f"Failed to read '{item}' from the keyring: {exc}") from exc
    if stored:
        return stored
    return set_keyring_item(item, prompt)


class VaultCredentials:
    """Credential provider for the secret store.

    Called by SecretClient each time it needs to log in. A requested
    reset applies to the first call only, so a re-authentication later
    in the same run does not prompt twice.
    """

    def __init__(
        self,
        vault_config: VaultConfig,
        reset: Optional[bool] = None,
        prompt: Prompt = _click_prompt,
    ) -> None:
        self._config = vault_config
        self._reset_pending = reset_requested() if reset is None else reset
        self._prompt = prompt

    @property
    def item(self) -> str:
        return f"Vault/{self._config.auth_method}"

    def __call__(self) -> Credential:
        reset, self._reset_pending = self._reset_pending, False
        username = load_credential_item(
            f"{self.item} Username", self._config.username, reset, self._prompt
        )
        password = load_credential_item(f"{self.item} Password", None, reset, self._prompt)
        logger.debug("Resolved credentials for %s", self.item)
        return Credential(
            auth_method=self._config.auth_method,
            username=username,
            password=password,
        )
