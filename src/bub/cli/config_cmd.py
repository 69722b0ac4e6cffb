"""Configuration commands: config, setup."""

from __future__ import annotations

from pathlib import Path

import click
from rich.syntax import Syntax

from ._common import BUB_HOME, console, fail


def register_config_commands(main: click.Group) -> None:
    """Register the config and setup commands."""

    @main.command("config")
    @click.option("--home", default=BUB_HOME, type=click.Path())
    @click.option("--show-default", is_flag=True, help="Show default config for reference.")
    @click.option("--edit", is_flag=True, help="Open the config file in $EDITOR.")
    def config_cmd(home, show_default, edit):
        """Show or edit the bub configuration."""
        from ..config import DEFAULT_CONFIG, config_path, write_default_config

        if show_default:
            console.print(Syntax(DEFAULT_CONFIG, "yaml"))
            return

        path = config_path(Path(home))
        if edit:
            path = write_default_config(Path(home))
            click.edit(filename=str(path))
            return

        if not path.exists():
            fail("No bub configuration found. Run 'bub setup' first.")
        console.print(f"[dim]{path}[/]")
        console.print(Syntax(path.read_text(), "yaml"))

    @main.command("setup")
    @click.option("--home", default=BUB_HOME, type=click.Path())
    @click.option("--no-edit", is_flag=True, help="Only create the file.")
    def setup(home, no_edit):
        """Create the configuration file and open it for editing."""
        from ..config import write_default_config

        path = write_default_config(Path(home))
        console.print(f"  Configuration: [cyan]{path}[/]")
        if not no_edit:
            click.edit(filename=str(path))
        console.print("  [green]Done.[/]")
