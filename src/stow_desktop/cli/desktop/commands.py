"""Commands for the stow-desktop CLI."""

import logging
import time
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from rich.table import Table
from typer import Exit, Option, Typer

from stow_desktop import __version__
from stow_desktop.cli.desktop.health import wait_until_ready
from stow_desktop.cli.desktop.logging import configure_desktop_logging
from stow_desktop.cli.desktop.rescan import RescanTrigger
from stow_desktop.cli.desktop.resolver import (
    default_strategies,
    find_runtime_binary,
    parse_env_file,
    resolve_server_location,
)
from stow_desktop.constants import (
    DEFAULT_PORT,
    NODE_ENV_VAR,
    PORT_ENV_VAR,
    PROBE_TIMEOUT_SECONDS,
    SERVER_DIR_ENV_VAR,
)
from stow_desktop.models import LauncherConfig
from stow_desktop.utils import console, format_elapsed_ms

app = Typer(
    name="stow-desktop",
    help="Desktop launcher for the Stow dashboard",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"stow-desktop {__version__}")
        raise Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = False,
):
    """Desktop launcher for the Stow dashboard."""
    # Launcher settings may live in a .env next to where the launcher is started.
    dotenv_path = Path.cwd() / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)


PortOption = Annotated[
    int, Option("--port", "-p", envvar=PORT_ENV_VAR, help="Port of the dashboard server")
]
ServerDirOption = Annotated[
    Path | None,
    Option(
        "--server-dir",
        envvar=SERVER_DIR_ENV_VAR,
        help="Standalone server directory (skips auto-detection)",
    ),
]
NodeOption = Annotated[
    Path | None,
    Option("--node", envvar=NODE_ENV_VAR, help="Path to the node binary"),
]


@app.command(name="run", help="Start the server, the tray icon and the dashboard window")
def run(
    port: PortOption = DEFAULT_PORT,
    server_dir: ServerDirOption = None,
    node: NodeOption = None,
    icon: Annotated[
        Path | None, Option("--icon", help="Image file to use as tray icon")
    ] = None,
    probe_timeout: Annotated[
        float,
        Option(help="Seconds to wait for the server before giving up on auto-show"),
    ] = PROBE_TIMEOUT_SECONDS,
    no_window: Annotated[
        bool,
        Option("--no-window", help="Do not open the window when the server is ready"),
    ] = False,
    no_tray: Annotated[
        bool, Option("--no-tray", help="Do not create a system tray icon")
    ] = False,
    verbose: Annotated[
        bool, Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
):
    from stow_desktop.cli.desktop.app import DesktopApp

    configure_desktop_logging(logging.DEBUG if verbose else logging.INFO)

    config = LauncherConfig(
        port=port,
        server_dir=server_dir,
        node_path=node,
        icon_path=icon,
        probe_timeout=probe_timeout,
        auto_show=not no_window,
    )

    console.print(f"[bold chartreuse1]🚀 Starting Stow Dashboard on {config.base_url}[/bold chartreuse1]")
    code = DesktopApp(config, enable_tray=not no_tray).run()
    if code:
        raise Exit(code=code)


@app.command(name="locate", help="Show where the server bundle and node runtime were found")
def locate(
    server_dir: ServerDirOption = None,
    node: NodeOption = None,
):
    config = LauncherConfig(server_dir=server_dir, node_path=node)
    found_dir = resolve_server_location(
        strategies=default_strategies(
            server_dir=config.server_dir,
            depth=config.search_depth,
            entry=config.server_entry,
        ),
        entry=config.server_entry,
    )
    runtime = find_runtime_binary(override=config.node_path)

    table = Table(title="Stow Dashboard runtime", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Server directory", str(found_dir) if found_dir else "[red]not found[/red]")
    table.add_row("Node", str(runtime) if runtime else "[red]not found[/red]")

    if found_dir is not None:
        env_vars = parse_env_file(found_dir / config.env_file_name)
        keys = ", ".join(sorted(env_vars)) if env_vars else "[dim]none[/dim]"
        table.add_row(config.env_file_name, keys)

    console.print(table)
    if found_dir is None or runtime is None:
        raise Exit(code=1)


@app.command(name="probe", help="Wait until the dashboard server accepts connections")
def probe(
    port: PortOption = DEFAULT_PORT,
    timeout: Annotated[
        float, Option("--timeout", "-t", help="Seconds to wait")
    ] = PROBE_TIMEOUT_SECONDS,
):
    config = LauncherConfig(port=port, probe_timeout=timeout)
    start = time.perf_counter()
    with console.status(f"Waiting for {config.base_url}..."):
        ready = wait_until_ready(
            config.port,
            config.probe_timeout,
            host=config.hostname,
            interval=config.probe_interval,
        )
    if not ready:
        console.print(
            f"[red]❌ {config.base_url} is not reachable ({format_elapsed_ms(start)})[/red]"
        )
        raise Exit(code=1)
    console.print(f"[green]✓[/green] {config.base_url} is up ({format_elapsed_ms(start)})")


@app.command(name="rescan", help="Ask the running dashboard server to rescan projects")
def rescan(
    port: PortOption = DEFAULT_PORT,
):
    config = LauncherConfig(port=port)
    thread = RescanTrigger(config.rescan_url, timeout=config.rescan_timeout).fire()
    if thread is not None:
        # The request is fire-and-forget; just don't exit before it has been sent.
        thread.join(timeout=config.rescan_timeout)
    console.print(f"[cyan]🔄 Rescan requested at {config.rescan_url}[/cyan]")
