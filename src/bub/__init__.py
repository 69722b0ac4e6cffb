"""
bub — a developer command line for the secret store.

This package holds the secret-store session client, its token cache
and credential lookup, and the command line around them.
"""

import os

__version__ = "0.1.0"

BUB_HOME = os.environ.get("BUB_HOME", "~/.config/bub")
