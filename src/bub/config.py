"""
Configuration file handling.

The configuration lives in ~/.config/bub/config.yml (or $BUB_HOME).
A missing or broken file never stops the tool: it logs and falls back
to defaults so commands that need nothing from it keep working.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml

from . import BUB_HOME
from .models import Configuration

logger = logging.getLogger("bub.config")

CONFIG_FILE = "config.yml"

DEFAULT_CONFIG = """\
---
vault:
  # Scheme and host the tunnel listens on; the tunnel port is appended.
  server: https://localhost
  # Login backend, used in auth/<method>/login/<username>.
  authMethod: Okta
  # TLS verification: true, false, or the path of a CA bundle.
  verify: true
  timeout: 30

environments:
  # The first prefix match is used.
  - prefix: staging2
    jumphost: jump.staging2.example.com
    region: us-west-2
    domain: staging2.example.com
  - prefix: staging
    jumphost: jump.example.com
    region: us-west-2
    domain: staging.example.com
  # Without a prefix, the entry acts as a catch-all.
  - jumphost: jump.example.com
    region: us-east-1
    domain: example.com

ssh:
  connectTimeout: 3
"""


def config_home(home: Optional[Path] = None) -> Path:
    """Resolve the configuration directory."""
    return (home or Path(BUB_HOME)).expanduser()


def config_path(home: Optional[Path] = None) -> Path:
    """Path of the configuration file."""
    return config_home(home) / CONFIG_FILE


def load_configuration(home: Optional[Path] = None) -> Configuration:
    """Load configuration from disk.

    Args:
        home: Override configuration directory. Defaults to $BUB_HOME.

    Returns:
        Configuration loaded from config.yml, or defaults.
    """
    path = config_path(home)
    if not path.exists():
        logger.warning("No bub configuration found. Please run `bub setup`")
        return Configuration()
    try:
        data = yaml.safe_load(path.read_text()) or {}
        return Configuration(**data)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        logger.warning("Could not parse %s: %s — using defaults", path, exc)
    return Configuration()


def write_default_config(home: Optional[Path] = None) -> Path:
    """Write the default template unless a configuration already exists.

    Returns:
        Path of the configuration file.
    """
    path = config_path(home)
    if not path.exists():
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG)
        logger.info("Created %s", path)
    return path
