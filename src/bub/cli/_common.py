"""Shared utilities for all CLI command modules.

Provides the Rich console instance and the error reporting used by
every command group.
"""

from __future__ import annotations

import sys

from rich.console import Console
from rich.markup import escape

from .. import BUB_HOME
from ..vault.errors import AuthenticationError

console = Console()

__all__ = ["BUB_HOME", "console", "fail"]


def fail(message: str, exc: Exception | None = None) -> None:
    """Print an error (with login guidance when relevant) and exit 1.

    Args:
        message: Short description of what failed.
        exc: The underlying exception, if any.
    """
    if exc is None:
        console.print(f"[bold red]{escape(message)}[/]")
    else:
        console.print(f"[bold red]{escape(message)}:[/] {escape(str(exc))}")
    if isinstance(exc, AuthenticationError) and exc.hint:
        console.print(f"  [yellow]{escape(exc.hint)}[/]")
    sys.exit(1)
