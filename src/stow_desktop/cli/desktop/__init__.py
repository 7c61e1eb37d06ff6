"""Desktop launcher: server supervision, readiness probe, window and tray control."""

from stow_desktop.cli.desktop.dispatcher import CommandChannel, CommandDispatcher
from stow_desktop.cli.desktop.health import wait_until_ready
from stow_desktop.cli.desktop.rescan import RescanTrigger
from stow_desktop.cli.desktop.supervisor import ServerSupervisor
from stow_desktop.cli.desktop.window import WindowController
from stow_desktop.models import CommandId, LauncherConfig, ServerHandle, WindowState

__all__ = [
    "CommandChannel",
    "CommandDispatcher",
    "CommandId",
    "LauncherConfig",
    "RescanTrigger",
    "ServerHandle",
    "ServerSupervisor",
    "WindowController",
    "WindowState",
    "wait_until_ready",
]
