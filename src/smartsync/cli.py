"""CLI entry point for smartsync."""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .auth.credentials import FileCredentialStore, credential_key
from .core.config import Config, get_config
from .core.exceptions import SmartSyncError
from .devices import Session, connect
from .devices.dispatcher import format_argument

console = Console()


def print_error(message: str) -> None:
    """Print error message in red."""
    console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print success message in green."""
    console.print(f"[green]✓[/green] {message}")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def open_session(ctx: click.Context) -> Session:
    """Connect with the context's configuration, exiting on failure."""
    config: Config = ctx.obj["config"]
    try:
        return connect(config)
    except SmartSyncError as e:
        print_error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="smartsync")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="JSON configuration file")
@click.option("--client-id", envvar="SMARTSYNC_CLIENT_ID", help="OAuth client id")
@click.option("--secret", envvar="SMARTSYNC_SECRET", help="OAuth client secret")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    client_id: str | None,
    secret: str | None,
    verbose: bool,
) -> None:
    """smartsync - list and control devices registered with the cloud service."""
    ctx.ensure_object(dict)
    config = Config.from_file(Path(config_path)).apply_env() if config_path else get_config()
    if client_id:
        config.client_id = client_id
    if secret:
        config.secret = secret
    config.verbose = config.verbose or verbose
    setup_logging(config.verbose)
    ctx.obj["config"] = config


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print devices as JSON")
@click.pass_context
def devices(ctx: click.Context, as_json: bool) -> None:
    """List devices with their attributes and commands."""
    with open_session(ctx) as session:
        if as_json:
            click.echo(json.dumps([d.to_dict() for d in session], indent=2))
            return

        if not len(session):
            console.print("[yellow]No devices found.[/yellow]")
            return

        for device in session:
            table = Table(title=f"{device.display_name or device.name} ({device.id})")
            table.add_column("Attribute", style="cyan")
            table.add_column("Value", style="green")
            for name, value in sorted(device.attributes().items()):
                table.add_row(name, format_argument(value))
            console.print(table)
            if device.commands:
                console.print(f"  [bold]Commands:[/bold] {', '.join(device.commands)}")
            console.print()


@main.command()
@click.argument("device_id")
@click.argument("command")
@click.argument("argument", type=float, required=False)
@click.pass_context
def call(ctx: click.Context, device_id: str, command: str, argument: float | None) -> None:
    """Send COMMAND (with an optional numeric ARGUMENT) to a device."""
    args = () if argument is None else (argument,)
    with open_session(ctx) as session:
        try:
            device = session.device(device_id)
        except KeyError:
            print_error(f"Unknown device: {device_id}")
            sys.exit(1)

        try:
            device.call(command, *args)
        except SmartSyncError as e:
            print_error(str(e))
            sys.exit(1)

    print_success(f"{device.name or device.id}: {command}")


@main.command("all-on")
@click.pass_context
def all_on(ctx: click.Context) -> None:
    """Send 'on' to every device and report the result per device."""
    failures = 0
    with open_session(ctx) as session:
        console.print("[bold]Turning all devices on...[/bold]")
        for device in session:
            label = f"[{device.id}] {device.name}"
            try:
                device.call("on")
            except SmartSyncError as e:
                failures += 1
                console.print(f"{escape(label)}: [red]{escape(str(e))}[/red]")
            else:
                console.print(f"{escape(label)}: [green]OK[/green]")

    if failures:
        sys.exit(1)


@main.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the stored credential for the configured client."""
    config: Config = ctx.obj["config"]
    if not config.client_id:
        print_error("No client id configured")
        sys.exit(1)

    try:
        FileCredentialStore(config.store_dir).delete(credential_key(config.client_id))
    except SmartSyncError as e:
        print_error(str(e))
        sys.exit(1)
    print_success("Stored credential removed")


if __name__ == "__main__":
    main()
