"""Desktop application context: startup flow, threads, and shutdown.

Threads:
- main: the window backend's GUI loop (pywebview needs the main thread)
- stow-ui: the command channel consumer; the only caller of window operations
- stow-health: waits for the server port, then posts `show`
- stow-tray: the tray icon loop
- stow-rescan: one per rescan request
"""

from __future__ import annotations

import atexit
import threading
import time

from stow_desktop.cli.desktop.dispatcher import CommandChannel, CommandDispatcher
from stow_desktop.cli.desktop.health import wait_until_ready
from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.cli.desktop.rescan import RescanTrigger
from stow_desktop.cli.desktop.supervisor import ServerSupervisor
from stow_desktop.cli.desktop.tray import TrayIcon
from stow_desktop.cli.desktop.window import WindowBackend, WindowController
from stow_desktop.models import CommandId, LauncherConfig, ServerHandle

logger = get_logger(LauncherLogComponent.APP)


class DesktopApp:
    """Owns every launcher component for the lifetime of the process."""

    def __init__(
        self,
        config: LauncherConfig,
        *,
        backend: WindowBackend | None = None,
        supervisor: ServerSupervisor | None = None,
        rescan: RescanTrigger | None = None,
        tray: TrayIcon | None = None,
        enable_tray: bool = True,
    ):
        self.config: LauncherConfig = config
        self.channel: CommandChannel = CommandChannel()

        if backend is None:
            from stow_desktop.cli.desktop.webview_backend import WebviewBackend

            backend = WebviewBackend(on_close_request=self._on_window_close)
        self.backend: WindowBackend = backend

        self.supervisor: ServerSupervisor = supervisor or ServerSupervisor(config)
        self.window: WindowController = WindowController(
            backend, config.window_spec()
        )
        self.rescan: RescanTrigger = rescan or RescanTrigger(
            config.rescan_url,
            timeout=config.rescan_timeout,
            max_inflight=config.rescan_max_inflight,
        )
        self.tray: TrayIcon | None = tray
        if self.tray is None and enable_tray:
            self.tray = TrayIcon(self.channel, icon_path=config.icon_path)

        self.dispatcher: CommandDispatcher = CommandDispatcher(
            window=self.window,
            supervisor=self.supervisor,
            rescan=self.rescan,
            request_exit=self.request_exit,
        )
        self.exit_code: int | None = None
        self._health_thread: threading.Thread | None = None

    # === Startup ===

    def start_server(self) -> ServerHandle | None:
        """Spawn the server and, if it comes up, show the window once it is reachable."""
        handle = self.supervisor.start()
        if handle is None:
            logger.warning("Running without a server; the window will not open by itself")
            return None

        if self.config.auto_show:
            self._health_thread = threading.Thread(
                target=self._show_when_ready, name="stow-health", daemon=True
            )
            self._health_thread.start()
        return handle

    def _show_when_ready(self) -> None:
        if not wait_until_ready(
            self.config.port,
            self.config.probe_timeout,
            host=self.config.hostname,
            interval=self.config.probe_interval,
        ):
            logger.warning(
                f"Server did not become reachable within {self.config.probe_timeout:.0f}s"
            )
            return
        # Give the server a moment to finish booting after the port opens.
        time.sleep(self.config.show_delay)
        self.channel.post(CommandId.SHOW)

    def _on_window_close(self) -> None:
        # Without a tray icon there is no way to bring a hidden window back.
        tray_active = self.tray is not None and self.tray.running
        self.channel.post(CommandId.HIDE if tray_active else CommandId.QUIT)

    # === Shutdown ===

    def request_exit(self, code: int = 0) -> None:
        """Tear down the UI so that `run()` can return `code`."""
        self.exit_code = code
        if self.tray is not None:
            self.tray.stop()
        self.backend.shutdown()

    def _emergency_stop(self) -> None:
        # Safety net for exits that bypass the quit command (Ctrl+C, uncaught errors).
        if self.supervisor.is_running():
            logger.warning("Stopping server on unexpected exit")
            self.supervisor.stop()

    # === Main loop ===

    def _serve_commands(self) -> None:
        try:
            self.channel.serve(self.dispatcher)
        finally:
            if self.exit_code is None:
                # Quit failed half-way; make sure the GUI loop still ends.
                self.supervisor.stop()
                self.request_exit(0)

    def run(self) -> int:
        """Run the launcher until the user quits. Returns the process exit code."""
        atexit.register(self._emergency_stop)
        try:
            self.start_server()
            if self.tray is not None and not self.tray.start():
                logger.info("Continuing without a tray icon")

            ui_thread = threading.Thread(
                target=self._serve_commands, name="stow-ui", daemon=True
            )
            ui_thread.start()

            self.backend.mainloop()
            ui_thread.join(timeout=5.0)
        finally:
            self._emergency_stop()
            atexit.unregister(self._emergency_stop)
        return self.exit_code if self.exit_code is not None else 0
