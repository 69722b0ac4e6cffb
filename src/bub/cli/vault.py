"""Secret-store commands: read, write, login, lookup, token.

Every command talks to the store through a tunnel that is already
open; pass its local port with --port (or $BUB_VAULT_PORT).
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from ._common import BUB_HOME, console, fail


_CONNECTION_OPTIONS = [
    click.option("--home", default=BUB_HOME, type=click.Path()),
    click.option("--env", "env_name", default="", help="Environment prefix to use."),
    click.option("--host", default=None, help="Remote store host (overrides --env)."),
    click.option(
        "--port", type=click.IntRange(1, 65535), required=True, envvar="BUB_VAULT_PORT",
        help="Local port of the tunnel to the store.",
    ),
    click.option("--reset-credentials", is_flag=True, help="Prompt for a new username/password."),
]


def _connection_options(fn):
    """Attach the options shared by every command that opens a session."""
    for option in reversed(_CONNECTION_OPTIONS):
        fn = option(fn)
    return fn


def _resolve(home, env_name, host, port):
    """Load configuration and describe the tunnel."""
    from ..config import load_configuration
    from ..tunnel import TunnelEndpoint, vault_tunnel

    cfg = load_configuration(Path(home))
    if host:
        return cfg, TunnelEndpoint(remote_host=host, local_port=port)

    env = cfg.find_environment(env_name)
    if env is None:
        fail(f"No environment matches '{env_name}'. Check 'bub config'.")
    try:
        return cfg, vault_tunnel(env, port)
    except ValueError as exc:
        fail("Invalid environment", exc)


def _open_client(home, env_name, host, port, reset_credentials):
    """Build a SecretClient, reporting failures the CLI way."""
    from ..config import config_home
    from ..credentials import CredentialError, VaultCredentials
    from ..vault import SecretClient, SecretStoreError, TokenStore

    cfg, tunnel = _resolve(home, env_name, host, port)
    try:
        return SecretClient(
            cfg.vault,
            tunnel,
            credentials=VaultCredentials(cfg.vault, reset=True if reset_credentials else None),
            token_store=TokenStore(config_home(Path(home))),
        )
    except (SecretStoreError, CredentialError) as exc:
        fail("Failed to open a secret-store session", exc)


def _parse_pairs(pairs: tuple[str, ...]) -> dict:
    data = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{pair}'", param_hint="DATA")
        data[key] = value
    return data


def _print_secret(secret, json_out: bool) -> None:
    if json_out:
        click.echo(json.dumps(secret.data, indent=2, default=str))
        return
    if not secret.data:
        console.print(f"\n  [dim]No data returned for {secret.path}.[/]\n")
        return

    table = Table(title=escape(secret.path), show_lines=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in sorted(secret.data.items()):
        shown = value if isinstance(value, str) else json.dumps(value, default=str)
        table.add_row(escape(key), escape(shown))

    console.print()
    console.print(table)
    if secret.lease_duration:
        console.print(f"  Lease: {secret.lease_duration}s")
    for warning in secret.warnings:
        console.print(f"  [yellow]{escape(warning)}[/]")
    console.print()


def register_vault_commands(main: click.Group) -> None:
    """Register the vault command group."""

    @main.group()
    def vault():
        """Read and write secrets in the secret store.

        Tokens are cached per store host under the config directory
        and renewed automatically when the store rejects them.
        """

    @vault.command("read")
    @click.argument("path")
    @_connection_options
    @click.option("--json-out", is_flag=True, help="Print the data as JSON.")
    def vault_read(path, home, env_name, host, port, reset_credentials, json_out):
        """Read the secret at PATH."""
        from ..credentials import CredentialError
        from ..vault import SecretStoreError

        client = _open_client(home, env_name, host, port, reset_credentials)
        try:
            secret = client.read(path)
        except (SecretStoreError, CredentialError) as exc:
            fail(f"Failed to read '{path}'", exc)
        _print_secret(secret, json_out)

    @vault.command("write")
    @click.argument("path")
    @click.argument("pairs", metavar="KEY=VALUE...", nargs=-1, required=True)
    @_connection_options
    @click.option("--json-out", is_flag=True, help="Print the response as JSON.")
    def vault_write(path, pairs, home, env_name, host, port, reset_credentials, json_out):
        """Write KEY=VALUE pairs to PATH."""
        from ..credentials import CredentialError
        from ..vault import SecretStoreError

        data = _parse_pairs(pairs)
        client = _open_client(home, env_name, host, port, reset_credentials)
        try:
            secret = client.write(path, data)
        except (SecretStoreError, CredentialError) as exc:
            fail(f"Failed to write '{path}'", exc)
        console.print(f"  [green]Wrote[/] {len(data)} key(s) to [cyan]{path}[/]")
        if secret.data:
            _print_secret(secret, json_out)

    @vault.command("login")
    @_connection_options
    def vault_login(home, env_name, host, port, reset_credentials):
        """Log in and cache a fresh token, ignoring any cached one."""
        from ..config import config_home
        from ..credentials import CredentialError, VaultCredentials
        from ..vault import AuthenticationFlow, SecretStoreError, TokenStore

        cfg, tunnel = _resolve(home, env_name, host, port)
        address = f"{cfg.vault.server.rstrip('/')}:{tunnel.local_port}"
        flow = AuthenticationFlow(
            TokenStore(config_home(Path(home))),
            verify=cfg.vault.verify,
            timeout=cfg.vault.timeout,
        )
        credentials = VaultCredentials(cfg.vault, reset=True if reset_credentials else None)
        try:
            token = flow.authenticate(credentials(), address, host_identity=tunnel.host_identity)
        except (SecretStoreError, CredentialError) as exc:
            fail("Login failed", exc)
        console.print(
            f"\n  [green]Authenticated[/] on [bold]{tunnel.host_identity}[/] "
            f"(token {token.masked})\n"
        )

    @vault.command("lookup")
    @_connection_options
    def vault_lookup(home, env_name, host, port, reset_credentials):
        """Show what the store knows about the current token."""
        from ..credentials import CredentialError
        from ..vault import SecretStoreError

        client = _open_client(home, env_name, host, port, reset_credentials)
        try:
            info = client.lookup_self().get("data") or {}
        except (SecretStoreError, CredentialError) as exc:
            fail("Token lookup failed", exc)

        console.print(f"\n  Store: [bold]{client.session.host_identity}[/] ({client.address})")
        console.print(f"  Identity: {info.get('display_name', 'unknown')}")
        console.print(f"  Policies: {', '.join(info.get('policies') or []) or 'none'}")
        console.print(f"  TTL: {info.get('ttl', '?')}s")
        console.print()

    @vault.command("token")
    @click.option("--home", default=BUB_HOME, type=click.Path())
    @click.option("--host", required=True, help="Remote store host, e.g. vault.example.com.")
    @click.option("--clear", is_flag=True, help="Delete the cached token.")
    def vault_token(home, host, clear):
        """Show or clear the cached token for a store host."""
        from ..config import config_home
        from ..vault import TokenStore

        store = TokenStore(config_home(Path(home)))
        try:
            path = store.path_for(host.lower())
        except ValueError as exc:
            fail("Invalid host", exc)

        if clear:
            if store.clear(host.lower()):
                console.print(f"\n  [red]REMOVED[/] {path}\n")
            else:
                console.print(f"\n  [dim]No cached token for {host}.[/]\n")
            return

        token = store.load(host.lower())
        if token is None:
            console.print(f"\n  [dim]No cached token for {host}.[/]\n")
            return
        console.print(f"\n  [green]CACHED[/] {token.masked}")
        console.print(f"  File: {path}\n")
