"""
bub CLI — one command line for the services around your code.

The main Click group is defined here; each command group lives in its
own module and is attached through a register function.

Entry point: bub.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="bub")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def main(verbose):
    """bub — secret-store access and configuration from one tool."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .config_cmd import register_config_commands
from .vault import register_vault_commands

register_config_commands(main)
register_vault_commands(main)
